"""
Test suite for the API key gateway
Tests key authentication, path dispatch, image and chat handlers and usage
tracking
"""

import random
from urllib.parse import parse_qs, urlparse

import pytest
from prometheus_client import REGISTRY

from alexzo.core.errors import ValidationError
from alexzo.gateway import build_image_url, chat_completion, generate_image

from conftest import ALICE_KEY, BOB_KEY

INVALID_FORMAT = "Invalid API key. Please use a valid alexzo_ API key."


def bearer(key):
    return {"Authorization": f"Bearer {key}"}


@pytest.mark.security
class TestGatewayAuthentication:
    """Test API key checks in front of every gateway path"""

    async def test_missing_header_rejected_without_lookups(self, async_client, key_store, upstream):
        """Test that no store or network call happens without a header"""
        response = await async_client.post("/api/proxy/generate", json={"prompt": "cat"})

        assert response.status_code == 401
        assert response.json() == {"error": INVALID_FORMAT}
        assert key_store.calls == []
        assert upstream.requests == []

    async def test_wrong_prefix_rejected_without_lookups(self, async_client, key_store):
        """Test that a key without the alexzo_ prefix never reaches the store"""
        response = await async_client.post(
            "/api/proxy/generate", json={"prompt": "cat"}, headers=bearer("sk-12345")
        )

        assert response.status_code == 401
        assert response.json()["error"] == INVALID_FORMAT
        assert key_store.calls == []

    async def test_non_bearer_scheme_rejected(self, async_client, key_store):
        response = await async_client.post(
            "/api/generate", json={"prompt": "cat"},
            headers={"Authorization": f"Basic {ALICE_KEY}"}
        )

        assert response.status_code == 401
        assert key_store.calls == []

    async def test_unknown_key_rejected(self, async_client, key_store):
        """Test that a well-formed key missing from the store is rejected"""
        response = await async_client.post(
            "/api/proxy/generate", json={"prompt": "cat"}, headers=bearer(BOB_KEY)
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid API key. Key not found."}
        assert key_store.calls == ["get"]

    async def test_deleted_key_rejected(self, async_client, key_store, alice_key):
        """Test that a key stops working as soon as it is deleted"""
        await key_store.delete(alice_key.key)

        response = await async_client.post(
            "/api/generate", json={"prompt": "cat"}, headers=bearer(alice_key.key)
        )

        assert response.status_code == 401

    async def test_store_failure_is_internal_error(self, async_client, key_store, alice_key):
        """Test that a broken store answers 500 with a JSON body"""
        async def broken_get(key):
            raise ConnectionError("store unreachable")
        key_store.get = broken_get

        response = await async_client.post(
            "/api/generate", json={"prompt": "cat"}, headers=bearer(alice_key.key)
        )

        assert response.status_code == 500
        assert "error" in response.json()


class TestGatewayDispatch:
    """Test routing of authenticated calls"""

    async def test_unknown_path_lists_supported_set(self, async_client, alice_key):
        response = await async_client.post(
            "/api/proxy/embeddings", json={}, headers=bearer(alice_key.key)
        )

        assert response.status_code == 404
        error = response.json()["error"]
        assert error.startswith("Endpoint not found: embeddings.")
        assert "generate, zyfoox/generate, chat/completions" in error

    async def test_surrounding_slashes_stripped(self, async_client, alice_key):
        response = await async_client.post(
            "/api/proxy/chat/completions/",
            json={"messages": [{"role": "user", "content": "hi"}]},
            headers=bearer(alice_key.key)
        )

        assert response.status_code == 200
        assert response.json()["object"] == "chat.completion"

    @pytest.mark.parametrize("path", [
        "/api/proxy/generate",
        "/api/proxy/zyfoox/generate",
        "/api/generate",
        "/api/zyfoox",
    ])
    async def test_image_paths(self, async_client, alice_key, path):
        response = await async_client.post(
            path, json={"prompt": "a red fox"}, headers=bearer(alice_key.key)
        )

        assert response.status_code == 200
        assert response.json()["model"] == "alexzo-ai-v1"

    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
    async def test_other_methods_not_allowed(self, async_client, method):
        response = await async_client.request(method, "/api/proxy/generate")

        assert response.status_code == 405
        assert response.json() == {
            "error": "Method not allowed. Use POST for image generation."
        }

    async def test_invalid_json_treated_as_empty(self, async_client, alice_key):
        """Test that a malformed body fails field validation, not parsing"""
        response = await async_client.post(
            "/api/generate",
            content=b"{not json",
            headers={**bearer(alice_key.key), "Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Prompt is required"}


class TestImageGeneration:
    """Test the image generation handler over HTTP"""

    async def test_default_request(self, async_client, alice_key):
        """Test prompt "cat" at 512x512 yields a URL with those parameters"""
        response = await async_client.post(
            "/api/proxy/generate",
            json={"prompt": "cat", "width": 512, "height": 512},
            headers={**bearer(alice_key.key), "X-Forwarded-For": "198.51.100.4"}
        )

        assert response.status_code == 200
        body = response.json()
        url = body["data"][0]["url"]
        assert "cat" in url
        assert "width=512&height=512" in url
        assert body["data"][0]["revised_prompt"] == "cat"
        assert body["meta"]["user_ip"] == "198.51.100.4"
        assert isinstance(body["created"], int)

    async def test_width_out_of_range(self, async_client, alice_key):
        response = await async_client.post(
            "/api/generate",
            json={"prompt": "cat", "width": 2000},
            headers=bearer(alice_key.key)
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": "Width and height must be between 256 and 1024 pixels"
        }

    async def test_identical_prompts_differ(self, async_client, alice_key):
        """Test that each call draws a fresh seed"""
        urls = set()
        for _ in range(5):
            response = await async_client.post(
                "/api/generate", json={"prompt": "same prompt"}, headers=bearer(alice_key.key)
            )
            urls.add(response.json()["data"][0]["url"])

        assert len(urls) > 1

    async def test_image_never_fetched_by_service(self, async_client, alice_key, upstream):
        await async_client.post(
            "/api/generate", json={"prompt": "cat"}, headers=bearer(alice_key.key)
        )

        assert upstream.requests == []


class TestImageHandler:
    """Test image request validation and URL construction"""

    def generate(self, payload, rng=None):
        return generate_image(
            payload,
            image_base_url="https://image.example.test/prompt",
            image_model="flux",
            user_ip="203.0.113.1",
            rng=rng
        )

    @pytest.mark.parametrize("payload", [None, {}, {"prompt": ""}, {"prompt": "   "}, {"prompt": 42}])
    def test_prompt_required(self, payload):
        with pytest.raises(ValidationError) as exc_info:
            self.generate(payload)
        assert exc_info.value.message == "Prompt is required"

    def test_prompt_too_long(self):
        with pytest.raises(ValidationError) as exc_info:
            self.generate({"prompt": "x" * 1001})
        assert exc_info.value.status_code == 400

    def test_prompt_at_limit_accepted(self):
        assert self.generate({"prompt": "x" * 1000})["data"][0]["revised_prompt"] == "x" * 1000

    @pytest.mark.parametrize("width", [255, 1025, 0, -512])
    def test_dimension_bounds(self, width):
        with pytest.raises(ValidationError):
            self.generate({"prompt": "cat", "width": width})

    @pytest.mark.parametrize("height", [256, 1024])
    def test_dimension_bounds_inclusive(self, height):
        url = self.generate({"prompt": "cat", "height": height})["data"][0]["url"]
        assert f"height={height}" in url

    @pytest.mark.parametrize("value", [512.5, "512", True])
    def test_non_integer_dimension(self, value):
        with pytest.raises(ValidationError):
            self.generate({"prompt": "cat", "width": value})

    def test_integral_float_dimension(self):
        """Test that 512.0 is accepted and sent as a whole number"""
        url = self.generate({"prompt": "cat", "width": 512.0, "height": 768.0})["data"][0]["url"]

        assert "width=512&" in url
        assert "height=768&" in url

    def test_seeded_url(self):
        """Test the full URL shape with a fixed seed source"""
        response = self.generate({"prompt": "a cat & a dog"}, rng=random.Random(7))
        url = urlparse(response["data"][0]["url"])
        query = parse_qs(url.query)

        assert url.netloc == "image.example.test"
        assert url.path == "/prompt/a%20cat%20%26%20a%20dog"
        assert query["width"] == ["512"]
        assert query["height"] == ["512"]
        assert query["nologo"] == ["true"]
        assert query["enhance"] == ["true"]
        assert query["model"] == ["flux"]
        assert 0 <= int(query["seed"][0]) < 1_000_000

    def test_prompt_encoded_like_uri_component(self):
        url = build_image_url("https://img.test/prompt/", "it's (fun)!", 512, 512, 1, "flux")
        assert url.startswith("https://img.test/prompt/it's%20(fun)!?")

    def test_response_metadata(self):
        response = self.generate({"prompt": "cat"})
        assert response["model"] == "alexzo-ai-v1"
        assert response["meta"]["user_ip"] == "203.0.113.1"


class TestChatHandler:
    """Test the placeholder chat completion"""

    def test_requires_messages(self):
        with pytest.raises(ValidationError) as exc_info:
            chat_completion({"messages": []})
        assert exc_info.value.message == "Messages array is required"

    def test_requires_list(self):
        with pytest.raises(ValidationError):
            chat_completion({"messages": "hello"})

    def test_echoes_model(self):
        response = chat_completion({"model": "gpt-4", "messages": [{"role": "user", "content": "hi"}]})
        assert response["model"] == "gpt-4"
        assert response["choices"][0]["message"]["role"] == "assistant"
        assert response["usage"]["total_tokens"] == 0

    def test_default_model(self):
        response = chat_completion({"messages": [{"role": "user", "content": "hi"}]})
        assert response["model"] == "gpt-3.5-turbo"


class TestGatewayUsageTracking:
    """Test fire-and-forget usage recording"""

    async def test_usage_recorded_after_dispatch(self, app, async_client, key_store, alice_key):
        response = await async_client.post(
            "/api/proxy/generate", json={"prompt": "cat"}, headers=bearer(alice_key.key)
        )
        await app.state.usage_tracker.drain()

        assert response.status_code == 200
        issued = await key_store.get(alice_key.key)
        assert issued.request_count == 1
        assert issued.last_used is not None
        records = await key_store.usage_for_key(alice_key.key)
        assert [r.endpoint for r in records] == ["generate"]

    async def test_unknown_path_not_tracked(self, app, async_client, key_store, alice_key):
        await async_client.post("/api/proxy/nope", json={}, headers=bearer(alice_key.key))
        await app.state.usage_tracker.drain()

        assert (await key_store.get(alice_key.key)).request_count == 0

    async def test_validation_failure_still_tracked(self, app, async_client, key_store, alice_key):
        """Test that recognized calls count even when the handler rejects the body"""
        response = await async_client.post(
            "/api/generate", json={}, headers=bearer(alice_key.key)
        )
        await app.state.usage_tracker.drain()

        assert response.status_code == 400
        assert (await key_store.get(alice_key.key)).request_count == 1

    async def test_tracking_failure_does_not_affect_response(
        self, app, async_client, key_store, alice_key
    ):
        """Test that a failing usage write is logged and counted, not surfaced"""
        async def broken_record_usage(key, endpoint):
            raise ConnectionError("store unreachable")
        key_store.record_usage = broken_record_usage

        before = REGISTRY.get_sample_value("alexzo_usage_tracking_failures_total") or 0.0

        response = await async_client.post(
            "/api/generate", json={"prompt": "cat"}, headers=bearer(alice_key.key)
        )
        await app.state.usage_tracker.drain()

        assert response.status_code == 200
        assert response.json()["data"][0]["revised_prompt"] == "cat"
        after = REGISTRY.get_sample_value("alexzo_usage_tracking_failures_total")
        assert after == before + 1
