from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import requests
from starlette.concurrency import run_in_threadpool

from taskboard.core import get_settings
from taskboard.core.exceptions import AuthenticationError, ValidationError
from taskboard.logs import debug_logger

settings = get_settings()

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v1/userinfo"
GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]
REQUEST_TIMEOUT = 10


@dataclass
class GoogleProfile:
    email: str
    name: str
    picture: Optional[str] = None
    google_id: Optional[str] = None


def google_redirect_uri() -> str:
    return f"{settings.BACKEND_URL}/api/auth/google-redirect"


class OAuthService:
    """Google sign-in: consent URL and code-for-profile exchange"""

    @staticmethod
    def build_google_auth_url() -> str:
        params = urlencode({
            "client_id": settings.GOOGLE_CLIENT_ID,
            "redirect_uri": google_redirect_uri(),
            "scope": " ".join(GOOGLE_SCOPES),
            "response_type": "code",
            "access_type": "offline",
            "prompt": "consent",
        })
        return f"{GOOGLE_AUTH_URL}?{params}"

    @staticmethod
    def _exchange_code(code: str) -> GoogleProfile:
        token_response = requests.post(
            GOOGLE_TOKEN_URL,
            data={
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "redirect_uri": google_redirect_uri(),
                "grant_type": "authorization_code",
                "code": code,
            },
            timeout=REQUEST_TIMEOUT,
        )
        token_response.raise_for_status()
        access_token = token_response.json()["access_token"]

        userinfo_response = requests.get(
            GOOGLE_USERINFO_URL,
            params={"alt": "json"},
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=REQUEST_TIMEOUT,
        )
        userinfo_response.raise_for_status()
        data = userinfo_response.json()

        if not data.get("email"):
            raise AuthenticationError("Google account has no email")
        if data.get("verified_email") is False:
            raise AuthenticationError("Google email is not verified")

        return GoogleProfile(
            email=data["email"],
            name=data.get("name") or data["email"].split("@")[0],
            picture=data.get("picture"),
            google_id=data.get("id"),
        )

    @staticmethod
    async def exchange_code_for_profile(code: Optional[str]) -> GoogleProfile:
        """Exchange an authorization code for the verified Google profile"""
        if not code:
            raise ValidationError("code: Authorization code is required")

        try:
            return await run_in_threadpool(OAuthService._exchange_code, code)
        except requests.RequestException as e:
            debug_logger.error(f"Google code exchange failed: {e}")
            raise AuthenticationError("Google authentication failed")
