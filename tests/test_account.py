"""
Test suite for account deletion
Tests that every kind of user data is removed and other users are untouched
"""

from fastapi.testclient import TestClient

from alexzo.keys import InMemoryKeyStore, IssuedKey, KeyManager
from alexzo.main import create_app

from conftest import ALICE_KEY, BOB_KEY, RecordingKeyStore

IMAGE = {"prompt": "a lighthouse", "imageUrl": "https://image.example.test/lighthouse"}


def seed(client, headers):
    """Create one key, one saved image and one custom API for a user"""
    key = client.post("/api/keys", json={"name": "main"}, headers=headers).json()["key"]["key"]
    client.post("/api/generated-images", json=IMAGE, headers=headers)
    client.post("/api/custom-apis", json={"name": "Hook"}, headers=headers)
    return key


class FailingCleanupKeyStore(RecordingKeyStore):
    async def delete_for_user(self, user_id):
        raise RuntimeError("connection reset")


class TestDeleteAccount:
    """Test DELETE /api/user"""

    def test_requires_identity_token(self, client):
        response = client.delete("/api/user")
        assert response.status_code == 401

    def test_deletes_all_user_data(self, client, alice_auth):
        alice_key = seed(client, alice_auth)
        client.post("/api/keys", json={"name": "second"}, headers=alice_auth)

        response = client.delete("/api/user", headers=alice_auth)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "User and all associated data deleted successfully",
            "deleted": {"apiKeys": 2, "images": 1, "customApis": 1},
        }
        assert client.get("/api/keys", headers=alice_auth).json() == {"keys": []}
        assert client.get("/api/generated-images", headers=alice_auth).json() == {"images": []}
        assert client.get("/api/custom-apis", headers=alice_auth).json() == {"apis": []}

        gateway = client.post(
            "/api/generate", json={"prompt": "cat"},
            headers={"Authorization": f"Bearer {alice_key}"}
        )
        assert gateway.status_code == 401

    def test_usage_logs_removed(self, client, key_store, alice_auth):
        alice_key = seed(client, alice_auth)
        client.post(
            "/api/generate", json={"prompt": "cat"},
            headers={"Authorization": f"Bearer {alice_key}"}
        )

        client.delete("/api/user", headers=alice_auth)

        assert alice_key not in key_store._usage

    def test_other_users_untouched(self, client, alice_auth, bob_auth):
        seed(client, alice_auth)
        bob_key = seed(client, bob_auth)

        client.delete("/api/user", headers=alice_auth)

        keys = client.get("/api/keys", headers=bob_auth).json()["keys"]
        assert [k["key"] for k in keys] == [bob_key]
        assert len(client.get("/api/generated-images", headers=bob_auth).json()["images"]) == 1
        assert len(client.get("/api/custom-apis", headers=bob_auth).json()["apis"]) == 1

    def test_user_without_data(self, client, bob_auth):
        response = client.delete("/api/user", headers=bob_auth)

        assert response.status_code == 200
        assert response.json()["deleted"] == {"apiKeys": 0, "images": 0, "customApis": 0}

    def test_store_failure(self, settings, verifier, http_client, alice_auth):
        app = create_app(
            settings,
            key_store=FailingCleanupKeyStore(),
            identity_verifier=verifier,
            http_client=http_client,
        )
        with TestClient(app) as client:
            response = client.delete("/api/user", headers=alice_auth)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to delete user data"}



class TestKeyStoreCleanup:
    """Test KeyStore.delete_for_user on the in-memory store"""

    async def test_drops_owned_keys_and_usage(self):
        store = InMemoryKeyStore()
        await store.create(IssuedKey(key=ALICE_KEY, user_id="alice", name="a"))
        await store.create(IssuedKey(key=BOB_KEY, user_id="bob", name="b"))
        await store.record_usage(ALICE_KEY, "generate")

        assert await store.delete_for_user("alice") == 1
        assert await store.get(ALICE_KEY) is None
        assert await store.usage_for_key(ALICE_KEY) == []
        assert await store.get(BOB_KEY) is not None

    async def test_key_manager_delete_user_keys(self):
        manager = KeyManager(InMemoryKeyStore())
        await manager.create_key("alice", "Alice", "one")
        await manager.create_key("alice", "Alice", "two")

        assert await manager.delete_user_keys("alice") == 2
        assert await manager.list_keys("alice") == []
