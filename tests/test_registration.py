import pytest

from app.services import referral_service
from conftest import PREFIX, avatar_file, count, run


def test_register_creates_user_and_referral_code(register, database):
    client, response = register()

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["referrer"] is None
    assert data["token"]
    assert client.cookies.get("token") == data["token"]

    user = data["user"]
    assert user["name"] == "Anna Sharma"
    assert user["email"] == "anna@example.com"
    assert user["phoneNumber"] == "9876543210"
    assert user["avatar"] == "defaultAvatar.png"
    assert user["referredBy"] is None
    assert user["referralCode"].startswith("ANNA")
    assert "password" not in user

    code = run(database.referral_codes.find_one({"code": user["referralCode"]}))
    assert str(code["user_id"]) == user["_id"]
    assert code["usages"] == []


def test_password_is_stored_hashed(register, database):
    register()
    stored = run(database.users.find_one({"email": "anna@example.com"}))
    assert stored["password"] != "s3cret-pass"
    assert stored["password"].startswith("$argon2")


@pytest.mark.parametrize("field", ["name", "password", "phoneNumber", "panCard", "gender"])
def test_missing_required_field_creates_nothing(register, database, upload_dir, field):
    _, response = register(files=avatar_file(), **{field: ""})

    assert response.status_code == 400
    assert response.json()["message"] == "Please provide all required fields!"
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert count(database.users) == 0
    assert count(database.referral_codes) == 0
    assert list(upload_dir.iterdir()) == []


def test_uploaded_avatar_is_stored(register, upload_dir):
    _, response = register(files=avatar_file("holiday pic.png"))

    assert response.status_code == 201
    avatar = response.json()["user"]["avatar"]
    assert avatar.startswith("holiday-pic-")
    assert avatar.endswith(".png")
    assert (upload_dir / avatar).exists()


def test_duplicate_email_rejected_and_upload_removed(register, database, upload_dir):
    register()
    _, response = register(files=avatar_file(), panCard="ZZZZZ9999Z", email="ANNA@example.com")

    assert response.status_code == 400
    assert response.json()["message"] == "Email already exists"
    assert response.json()["code"] == "CONFLICT"
    assert count(database.users) == 1
    assert list(upload_dir.iterdir()) == []


def test_duplicate_pan_is_case_insensitive(register, database, upload_dir):
    register(panCard="abcde1234f")
    _, response = register(files=avatar_file(), email="other@example.com", panCard="ABCDE1234F")

    assert response.status_code == 400
    assert response.json()["message"] == "PAN card already registered"
    assert count(database.users) == 1
    assert count(database.referral_codes) == 1
    assert list(upload_dir.iterdir()) == []


def test_pan_card_stored_upper_case(register):
    _, response = register(panCard="abcde1234f")
    assert response.json()["user"]["panCard"] == "ABCDE1234F"


def test_non_standard_pan_and_email_accepted(register, database):
    _, response = register(panCard="pan-001", email="anna@localhost")

    assert response.status_code == 201, response.text
    assert response.json()["user"]["panCard"] == "PAN-001"
    assert response.json()["user"]["email"] == "anna@localhost"
    assert count(database.users) == 1


def test_pan_card_uniqueness_ignores_case(register, database):
    register(panCard="pan-001")
    _, response = register(panCard="PAN-001", name="Bob Rao", email="bob@example.com")

    assert response.status_code == 400
    assert response.json()["message"] == "PAN card already registered"
    assert count(database.users) == 1


def test_email_is_optional(register, database):
    _, first = register(email="")
    _, second = register(email=None, name="Bob Rao", panCard="FGHIJ5678K")

    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["user"]["email"] is None
    assert count(database.users) == 2


def test_unknown_referral_code_rejected(register, database, upload_dir):
    _, response = register(files=avatar_file(), inputReferralCode="NOPE0000")

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid referral code!"
    assert count(database.users) == 0
    assert list(upload_dir.iterdir()) == []


def test_referral_codes_are_reusable_across_referees(register, database):
    _, a = register()
    code = a.json()["user"]["referralCode"]
    a_id = a.json()["user"]["_id"]

    _, b = register(name="Bob Rao", email="bob@example.com", panCard="FGHIJ5678K", inputReferralCode=code)
    _, c = register(name="Cara Iyer", email="cara@example.com", panCard="KLMNO1234P", inputReferralCode=code.lower())

    assert b.status_code == 201
    assert c.status_code == 201
    assert b.json()["user"]["referredBy"] == a_id
    assert c.json()["user"]["referredBy"] == a_id
    assert b.json()["referrer"] == {"name": "Anna Sharma", "referralCode": code}

    referral = run(database.referral_codes.find_one({"code": code}))
    assert referral["usage_count"] == 2
    assert [u["user_name"] for u in referral["usages"]] == ["Bob Rao", "Cara Iyer"]
    assert {str(u["user_id"]) for u in referral["usages"]} == {
        b.json()["user"]["_id"],
        c.json()["user"]["_id"],
    }


def test_generated_codes_are_unique(register, database):
    codes = set()
    for i, pan in enumerate(["AAAAA1111A", "BBBBB2222B", "CCCCC3333C", "DDDDD4444D"]):
        _, response = register(email=f"anna{i}@example.com", panCard=pan)
        codes.add(response.json()["user"]["referralCode"])
    assert len(codes) == 4


def test_failure_after_user_insert_rolls_back(register, database, upload_dir, monkeypatch):
    async def broken_create(*args, **kwargs):
        raise RuntimeError("referral store unavailable")

    monkeypatch.setattr(referral_service, "create_referral_code", broken_create)

    _, response = register(files=avatar_file())

    assert response.status_code == 400
    assert response.json()["message"] == "referral store unavailable"
    assert count(database.users) == 0
    assert list(upload_dir.iterdir()) == []


def test_registration_accepts_multipart_without_file(make_client):
    client = make_client()
    response = client.post(
        f"{PREFIX}/create-user",
        data={
            "name": "Dev Patel",
            "password": "pw-123456",
            "phoneNumber": "9000000000",
            "panCard": "PQRST6789U",
            "gender": "Male",
        },
        files={"unrelated": ("note.txt", b"x", "text/plain")},
    )
    assert response.status_code == 201
    assert response.json()["user"]["referralCode"].startswith("DEV")
