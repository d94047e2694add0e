"""Post narration service: select a candidate post, narrate it, store the audio."""
