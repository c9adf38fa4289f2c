"""
utils/constants.py

Purpose: Centralized static content

- All user-facing response messages
- Roles and referral code parameters

(Prevents hardcoding across the codebase)
"""

# ============================================================
# ROLES
# ============================================================

ROLE_USER = "user"

# ============================================================
# REFERRAL CODES
# ============================================================

REFERRAL_PREFIX_LENGTH = 4
REFERRAL_SUFFIX_LENGTH = 4
REFERRAL_FALLBACK_PREFIX = "USER"
REFERRAL_MAX_ATTEMPTS = 10

# ============================================================
# REGISTRATION
# ============================================================

MSG_MISSING_REQUIRED_FIELDS = "Please provide all required fields!"
MSG_INVALID_REFERRAL_CODE = "Invalid referral code!"
MSG_EMAIL_EXISTS = "Email already exists"
MSG_PAN_EXISTS = "PAN card already registered"

# ============================================================
# LOGIN / SESSION
# ============================================================

MSG_MISSING_LOGIN_FIELDS = "Please provide the all fields!"
MSG_LOGIN_USER_NOT_FOUND = "User doesn't exists!"
MSG_WRONG_CREDENTIALS = "Please provide the correct information"
MSG_USER_MISSING = "User doesn't exists"
MSG_LOGIN_REQUIRED = "Please login to continue"
MSG_LOGOUT = "Log out successful!"

# ============================================================
# PROFILE
# ============================================================

MSG_USER_NOT_FOUND = "User not found"
MSG_AVATAR_REQUIRED = "Please upload an image"
MSG_ADDRESS_TYPE_REQUIRED = "Please provide the address type"
MSG_ADDRESS_EXISTS = "{address_type} address already exists"
MSG_ADDRESS_NOT_FOUND = "Address not found"
MSG_OLD_PASSWORD_INCORRECT = "Old password is incorrect!"
MSG_PASSWORD_MISMATCH = "Password doesn't matched with each other!"
MSG_NEW_PASSWORD_REQUIRED = "Please provide the new password"
MSG_PASSWORD_UPDATED = "Password updated successfully!"

# ============================================================
# ADMIN
# ============================================================

MSG_ROLE_FORBIDDEN = "{role} can not access this resources!"
MSG_ADMIN_USER_NOT_FOUND = "User is not available with this id"
MSG_USER_DELETED = "User deleted successfully!"

# ============================================================
# REFERRALS
# ============================================================

MSG_REFERRAL_NOT_FOUND = "Invalid referral code"
MSG_OWN_REFERRAL_CODE = "Cannot use your own referral code"
MSG_REFERRAL_ALREADY_USED = "You have already used a referral code"
MSG_REFERRAL_OTHER_ACCOUNT = "You can only apply a referral code to your own account"
MSG_REFERRAL_APPLIED = "Referral code applied successfully"
