"""Tests for the ElevenLabs and Polly speech providers."""

from __future__ import annotations

import asyncio
import io
import json

import httpx
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from narrator.config.settings import ElevenLabsConfig, PollyConfig
from narrator.services.elevenlabs_tts import ElevenLabsSpeechProvider
from narrator.services.errors import ErrorKind, ProviderConfigError, ProviderError
from narrator.services.polly_tts import PollySpeechProvider

BASE_URL = "https://api.elevenlabs.test/v1"


def _elevenlabs(handler) -> ElevenLabsSpeechProvider:
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return ElevenLabsSpeechProvider(
        config=ElevenLabsConfig(api_key="secret", base_url=BASE_URL, voice_id="voice-x"),
        client=client,
    )


def test_elevenlabs_requires_api_key():
    with pytest.raises(ProviderConfigError) as excinfo:
        ElevenLabsSpeechProvider(config=ElevenLabsConfig(api_key=None))

    assert excinfo.value.kind is ErrorKind.PROVIDER_NOT_CONFIGURED
    assert excinfo.value.source == "elevenlabs"


def test_elevenlabs_synthesize_posts_text_and_returns_audio():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["key"] = request.headers["xi-api-key"]
        seen["accept"] = request.headers["accept"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, content=b"mp3-bytes")

    audio = asyncio.run(_elevenlabs(handler).synthesize("Hello world"))

    assert audio == b"mp3-bytes"
    assert seen["path"] == "/v1/text-to-speech/voice-x"
    assert seen["key"] == "secret"
    assert seen["accept"] == "audio/mpeg"
    assert seen["body"]["text"] == "Hello world"
    assert seen["body"]["voice_settings"]["stability"] == 0.5


@pytest.mark.parametrize(
    ("status_code", "kind"),
    [
        (401, ErrorKind.AUTHENTICATION_FAILED),
        (429, ErrorKind.RATE_LIMITED),
        (500, ErrorKind.PROVIDER_ERROR),
    ],
)
def test_elevenlabs_errors_carry_remote_status(status_code, kind):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"detail": {"message": "quota exceeded"}})

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(_elevenlabs(handler).synthesize("Hello"))

    assert excinfo.value.status_code == status_code
    assert excinfo.value.kind is kind
    assert str(excinfo.value) == "quota exceeded"


def test_elevenlabs_network_failure_has_no_status():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(_elevenlabs(handler).synthesize("Hello"))

    assert excinfo.value.status_code is None
    assert excinfo.value.kind is ErrorKind.PROVIDER_ERROR


def test_elevenlabs_probes_and_quota():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/user/subscription"):
            return httpx.Response(200, json={"character_limit": 10_000, "character_count": 2_500})
        if request.url.path.endswith("/user"):
            return httpx.Response(200, json={"subscription": {}})
        return httpx.Response(404)

    provider = _elevenlabs(handler)

    assert asyncio.run(provider.is_available()) is True
    assert asyncio.run(provider.remaining_quota()) == 7_500


def test_elevenlabs_probe_failures_degrade():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    provider = _elevenlabs(handler)

    assert asyncio.run(provider.is_available()) is False
    assert asyncio.run(provider.remaining_quota()) == -1


def test_elevenlabs_quota_ignores_malformed_subscription():
    payloads = iter([["not", "an", "object"], {"character_limit": "lots", "character_count": 1}])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=next(payloads))

    provider = _elevenlabs(handler)

    assert asyncio.run(provider.remaining_quota()) == -1
    assert asyncio.run(provider.remaining_quota()) == -1


class StubPollyClient:
    def __init__(self, *, audio: bytes = b"polly-audio", error: Exception | None = None) -> None:
        self.audio = audio
        self.error = error
        self.requests: list[dict] = []

    def synthesize_speech(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"AudioStream": io.BytesIO(self.audio)}

    def describe_voices(self, **kwargs):
        if self.error is not None:
            raise self.error
        return {"Voices": []}


def _client_error(status_code: int) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": "Throttling", "Message": "slow down"},
            "ResponseMetadata": {"HTTPStatusCode": status_code},
        },
        "SynthesizeSpeech",
    )


def test_polly_synthesize_reads_stream():
    client = StubPollyClient()
    provider = PollySpeechProvider(config=PollyConfig(voice_id="Matthew"), client=client)

    audio = asyncio.run(provider.synthesize("Hello"))

    assert audio == b"polly-audio"
    assert client.requests[0]["VoiceId"] == "Matthew"
    assert client.requests[0]["OutputFormat"] == "mp3"
    assert asyncio.run(provider.remaining_quota()) == -1


def test_polly_client_error_maps_status():
    provider = PollySpeechProvider(config=PollyConfig(), client=StubPollyClient(error=_client_error(429)))

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(provider.synthesize("Hello"))

    assert excinfo.value.kind is ErrorKind.RATE_LIMITED
    assert excinfo.value.status_code == 429
    assert asyncio.run(provider.is_available()) is False


def test_polly_local_failures_have_no_status():
    error = EndpointConnectionError(endpoint_url="https://polly.us-east-1.amazonaws.com")
    provider = PollySpeechProvider(config=PollyConfig(), client=StubPollyClient(error=error))

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(provider.synthesize("Hello"))

    assert excinfo.value.status_code is None


def test_polly_empty_stream_is_an_error():
    provider = PollySpeechProvider(config=PollyConfig(), client=StubPollyClient(audio=b""))

    with pytest.raises(ProviderError):
        asyncio.run(provider.synthesize("Hello"))


def test_disabled_polly_is_not_configured():
    with pytest.raises(ProviderConfigError):
        PollySpeechProvider(config=PollyConfig(enabled=False), client=StubPollyClient())
