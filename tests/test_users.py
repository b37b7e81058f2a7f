import pytest


def test_profile_requires_token(client):
    response = client.get("/api/v1/users/profile")
    assert response.status_code in (401, 403)


def test_profile_rejects_bad_token(client):
    response = client.get("/api/v1/users/profile", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authorized, token failed"


def test_profile_token_of_deleted_user_is_rejected(client, db, make_user):
    alice = make_user("alice")
    db.rows("users").clear()
    response = client.get("/api/v1/users/profile", headers=alice["headers"])
    assert response.status_code == 401


def test_get_my_profile(client, make_user):
    alice = make_user("alice")
    response = client.get("/api/v1/users/profile", headers=alice["headers"])

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == alice["id"]
    assert body["email"] == "alice@example.com"
    assert body["followers"] == []
    assert "password_hash" not in body


def test_update_profile_fields(client, db, make_user):
    alice = make_user("alice")
    response = client.put("/api/v1/users/profile", headers=alice["headers"], data={
        "bio": "  hello there  ",
        "website": "https://alice.dev",
        "location": "Lisbon",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["bio"] == "hello there"
    assert body["website"] == "https://alice.dev"
    assert body["location"] == "Lisbon"
    assert db.rows("users")[0]["updated_at"]


def test_update_profile_rename_to_taken_username(client, make_user):
    alice = make_user("alice")
    make_user("bobby")
    response = client.put("/api/v1/users/profile", headers=alice["headers"], data={"username": "bobby"})
    assert response.status_code == 400


def test_update_profile_bio_too_long(client, make_user):
    alice = make_user("alice")
    response = client.put("/api/v1/users/profile", headers=alice["headers"], data={"bio": "x" * 161})
    assert response.status_code == 400


def test_update_profile_password_allows_new_login(client, make_user):
    alice = make_user("alice")
    response = client.put("/api/v1/users/profile", headers=alice["headers"], data={"password": "changed-pass"})
    assert response.status_code == 200

    login = client.post("/api/v1/users/login", json={"username": "alice", "password": "changed-pass"})
    assert login.status_code == 200


def test_update_profile_picture_replaces_previous(client, media, make_user):
    alice = make_user("alice")
    first = client.put(
        "/api/v1/users/profile",
        headers=alice["headers"],
        files={"profile_pic": ("me.png", b"\x89PNG first", "image/png")},
    )
    assert first.status_code == 200
    first_asset = first.json()["profile_pic"][0]
    assert first_asset["public_id"].startswith("profiles/")

    second = client.put(
        "/api/v1/users/profile",
        headers=alice["headers"],
        files={"profile_pic": ("me2.png", b"\x89PNG second", "image/png")},
    )
    assert second.status_code == 200
    assert len(second.json()["profile_pic"]) == 1
    assert second.json()["profile_pic"][0]["public_id"] != first_asset["public_id"]
    assert media.deleted == [first_asset["public_id"]]


def test_update_profile_rejects_disallowed_file_type(client, make_user):
    alice = make_user("alice")
    response = client.put(
        "/api/v1/users/profile",
        headers=alice["headers"],
        files={"background_image": ("run.exe", b"MZ", "application/x-msdownload")},
    )
    assert response.status_code == 400


def test_search_users_is_case_insensitive(client, make_user):
    make_user("Alice")
    make_user("malice")
    make_user("bobby")

    response = client.get("/api/v1/users/ALI")

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert sorted(u["username"] for u in body["users"]) == ["Alice", "malice"]
    assert all("email" not in u for u in body["users"])


def test_search_users_treats_keyword_literally(client, make_user):
    make_user("alice")
    response = client.get("/api/v1/users/a.*")
    assert response.status_code == 200
    assert response.json()["count"] == 0


def test_delete_profile_removes_posts_media_and_follow_refs(client, db, media, make_user):
    alice = make_user("alice")
    bobby = make_user("bobby")
    client.put("/api/v1/users/follow/bobby", headers=alice["headers"])
    client.put("/api/v1/users/follow/alice", headers=bobby["headers"])
    created = client.post(
        "/api/v1/posts",
        headers=alice["headers"],
        data={"caption": "bye", "type": "image"},
        files=[("files", ("a.png", b"png", "image/png"))],
    )
    asset_id = created.json()["images"][0]["public_id"]

    response = client.delete("/api/v1/users/profile", headers=alice["headers"])

    assert response.status_code == 200
    assert [u["username"] for u in db.rows("users")] == ["bobby"]
    assert db.rows("posts") == []
    assert asset_id in media.deleted
    remaining = db.rows("users")[0]
    assert remaining["followers"] == []
    assert remaining["followings"] == []


def test_update_profile_checks_both_pictures_before_uploading(client, media, make_user):
    alice = make_user("alice")
    response = client.put(
        "/api/v1/users/profile",
        headers=alice["headers"],
        files={
            "profile_pic": ("p.png", b"png", "image/png"),
            "background_image": ("b.mp4", b"mp4", "video/mp4"),
        },
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "background_image must be an image"
    assert media.uploaded == []


def test_update_profile_failed_save_removes_new_pictures(client, db, media, make_user):
    alice = make_user("alice")
    db.failing.add(("users", "update"))

    response = client.put(
        "/api/v1/users/profile",
        headers=alice["headers"],
        files={
            "profile_pic": ("p.png", b"png", "image/png"),
            "background_image": ("b.png", b"png", "image/png"),
        },
    )

    assert response.status_code == 500
    assert len(media.uploaded) == 2
    assert sorted(media.deleted) == sorted(a["public_id"] for a in media.uploaded)


def test_update_profile_rejects_malformed_email(client, db, make_user):
    alice = make_user("alice")
    response = client.put("/api/v1/users/profile", headers=alice["headers"], data={"email": "not-an-email"})

    assert response.status_code == 400
    assert db.rows("users")[0]["email"] == "alice@example.com"


def test_update_profile_email_is_lowercased(client, db, make_user):
    alice = make_user("alice")
    response = client.put("/api/v1/users/profile", headers=alice["headers"], data={"email": "Alice@New.example.com"})

    assert response.status_code == 200
    assert db.rows("users")[0]["email"] == "alice@new.example.com"


@pytest.mark.parametrize("params", [{"limit": -1}, {"limit": 0}, {"limit": 1000}, {"offset": -5}])
def test_search_users_rejects_bad_paging(client, params):
    response = client.get("/api/v1/users/ali", params=params)
    assert response.status_code == 400
