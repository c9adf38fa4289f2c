import pytest
from bson import ObjectId

from app.services import referral_service
from conftest import PREFIX, run


def apply(client, code, user_id=None):
    body = {"referralCode": code}
    if user_id is not None:
        body["userId"] = user_id
    return client.post(f"{PREFIX}/apply-referral", json=body)


# ============================================================================
# APPLY-REFERRAL ENDPOINT
# ============================================================================

def test_apply_referral(anna, bob, database):
    _, anna_user = anna
    bob_client, bob_user = bob

    response = apply(bob_client, anna_user["referralCode"], bob_user["_id"])

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Referral code applied successfully"}
    assert bob_client.get(f"{PREFIX}/getuser").json()["user"]["referredBy"] == anna_user["_id"]

    referral = run(database.referral_codes.find_one({"code": anna_user["referralCode"]}))
    assert referral["usage_count"] == 1
    assert str(referral["usages"][0]["user_id"]) == bob_user["_id"]
    assert referral["usages"][0]["user_name"] == "Bob Rao"


def test_cannot_use_own_referral_code(anna):
    client, user = anna
    response = apply(client, user["referralCode"], user["_id"])

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot use your own referral code"


def test_referral_can_only_be_applied_once(anna, bob, register):
    _, anna_user = anna
    bob_client, bob_user = bob
    _, cara = register(name="Cara Iyer", email="cara@example.com", panCard="KLMNO1234P")

    assert apply(bob_client, anna_user["referralCode"]).status_code == 200
    response = apply(bob_client, cara.json()["user"]["referralCode"])

    assert response.status_code == 400
    assert response.json()["message"] == "You have already used a referral code"
    assert bob_client.get(f"{PREFIX}/getuser").json()["user"]["referredBy"] == anna_user["_id"]


def test_referral_applied_at_registration_blocks_later_apply(anna, bob, register):
    _, anna_user = anna
    _, bob_user = bob
    cara_client, cara = register(
        name="Cara Iyer", email="cara@example.com", panCard="KLMNO1234P",
        inputReferralCode=anna_user["referralCode"],
    )

    response = apply(cara_client, bob_user["referralCode"])
    assert response.status_code == 400
    assert response.json()["message"] == "You have already used a referral code"


def test_unknown_referral_code(anna):
    client, _ = anna
    response = apply(client, "NOPE0000")

    assert response.status_code == 400
    assert response.json()["code"] == "NOT_FOUND"
    assert response.json()["message"] == "Invalid referral code"


def test_referral_code_lookup_ignores_case(anna, bob):
    _, anna_user = anna
    bob_client, _ = bob
    assert apply(bob_client, anna_user["referralCode"].lower()).status_code == 200


def test_cannot_apply_referral_for_another_account(anna, bob, register):
    _, anna_user = anna
    bob_client, _ = bob
    _, cara = register(name="Cara Iyer", email="cara@example.com", panCard="KLMNO1234P")

    response = apply(bob_client, anna_user["referralCode"], cara.json()["user"]["_id"])

    assert response.status_code == 400
    assert response.json()["code"] == "AUTHENTICATION_FAILED"


def test_apply_referral_requires_session(anna, make_client):
    _, anna_user = anna
    assert apply(make_client(), anna_user["referralCode"]).status_code == 401


def test_referral_stats(anna, register):
    anna_client, anna_user = anna
    register(name="Bob Rao", email="bob@example.com", panCard="FGHIJ5678K", inputReferralCode=anna_user["referralCode"])

    response = anna_client.get(f"{PREFIX}/referral-stats")

    assert response.status_code == 200
    referral = response.json()["referral"]
    assert referral["code"] == anna_user["referralCode"]
    assert referral["usageCount"] == 1
    assert referral["usages"][0]["userName"] == "Bob Rao"


# ============================================================================
# REFERRAL SERVICE
# ============================================================================

def test_generate_referral_code_skips_taken_codes(monkeypatch):
    run(referral_service.create_referral_code("ANNAAAAA", ObjectId(), "Anna"))
    suffixes = iter(["AAAA", "BBBB"])
    monkeypatch.setattr(referral_service, "_random_suffix", lambda length: next(suffixes))

    assert run(referral_service.generate_referral_code("Anna")) == "ANNABBBB"


def test_generate_referral_code_falls_back_to_long_code(monkeypatch):
    run(referral_service.create_referral_code("ANNAAAAA", ObjectId(), "Anna"))
    monkeypatch.setattr(referral_service, "_random_suffix", lambda length: "A" * length)

    assert run(referral_service.generate_referral_code("Anna")) == "ANNA" + "A" * 8


@pytest.mark.parametrize("name,prefix", [
    ("Anna Sharma", "ANNA"),
    ("Li", "LI"),
    ("  ", "USER"),
    ("Zoë-Marie", "ZOMA"),
])
def test_referral_code_prefix(name, prefix):
    code = run(referral_service.generate_referral_code(name))
    assert code.startswith(prefix)
    assert len(code) == len(prefix) + 4


def test_verify_referral_code():
    owner = ObjectId()
    run(referral_service.create_referral_code("ANNA1234", owner, "Anna"))

    details = run(referral_service.verify_referral_code(" anna1234 "))
    assert details.referrer_id == owner
    assert details.referrer_name == "Anna"
    assert details.referral_code == "ANNA1234"

    assert run(referral_service.verify_referral_code("MISSING1")) is None
    assert run(referral_service.verify_referral_code("")) is None
    assert run(referral_service.verify_referral_code(None)) is None


def test_update_referral_usage_is_idempotent(database):
    run(referral_service.create_referral_code("ANNA1234", ObjectId(), "Anna"))
    redeemer = ObjectId()

    assert run(referral_service.update_referral_usage("ANNA1234", redeemer, "Bob")) is True
    assert run(referral_service.update_referral_usage("ANNA1234", redeemer, "Bob")) is False

    referral = run(database.referral_codes.find_one({"code": "ANNA1234"}))
    assert referral["usage_count"] == 1
    assert len(referral["usages"]) == 1


def test_update_referral_usage_unknown_code():
    assert run(referral_service.update_referral_usage("MISSING1", ObjectId(), "Bob")) is False
