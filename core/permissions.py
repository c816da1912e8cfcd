# ============================================
# CENTRALIZED USER TYPE → PERMISSIONS MAP
# ============================================
ROLE_PERMISSIONS = {

    # =====================================================
    # PIN — Person-In-Need, creates and manages own requests
    # =====================================================
    "pin": [
        "requests:create",
    ],


    # =====================================================
    # CSR — corporate volunteer
    # =====================================================
    "csr": [
        "requests:apply",            # apply / withdraw / decline
        "shortlists:write",
    ],


    # =====================================================
    # PLATFORM MANAGER — categories, moderation, reports
    # =====================================================
    "platform_manager": [
        "requests:moderate",         # freeze/unfreeze, all-requests view
        "categories:write",
        "reports:read",
    ],


    # =====================================================
    # SYSTEM ADMIN — accounts, moderation, reports
    # =====================================================
    "system_admin": [
        "requests:moderate",
        "users:read", "users:write",
        "reports:read",
    ],
}
