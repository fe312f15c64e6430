import pytest

from fastapi import Response

from models.helpers import ClientType
from schema.security import Principal, RefreshTokenRequest
from security.transport import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    attach_cookie,
    attach_token_cookies,
    clear_cookies,
    extract_access_token,
    extract_refresh_token,
    resolve_client_type,
)

from conftest import make_request

IPHONE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Mobile/15E148"
DESKTOP_UA = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Safari/537.36"


def set_cookie_headers(response: Response) -> list[str]:
    return [value.decode("latin-1") for name, value in response.raw_headers if name == b"set-cookie"]


class TestClientTypeResolution:
    def test_defaults_to_web(self):
        assert resolve_client_type(make_request()) is ClientType.WEB

    def test_desktop_browser_is_web(self):
        assert resolve_client_type(make_request({"User-Agent": DESKTOP_UA})) is ClientType.WEB

    @pytest.mark.parametrize(
        "user_agent",
        [
            IPHONE_UA,
            "Mozilla/5.0 (Linux; Android 14; Pixel 8)",
            "Opera/9.80 (J2ME/MIDP; Opera Mini/9.80)",
            "okhttp/4.12 mobile",
        ],
    )
    def test_mobile_user_agents(self, user_agent):
        assert resolve_client_type(make_request({"User-Agent": user_agent})) is ClientType.MOBILE

    def test_keywords_are_case_sensitive(self):
        assert resolve_client_type(make_request({"User-Agent": "ANDROID-LIKE CRAWLER"})) is ClientType.WEB

    def test_header_wins_over_desktop_user_agent(self):
        request = make_request({"X-Client-Type": "MOBILE", "User-Agent": DESKTOP_UA})

        assert resolve_client_type(request) is ClientType.MOBILE

    def test_header_wins_over_mobile_user_agent(self):
        request = make_request({"X-Client-Type": "WEB", "User-Agent": IPHONE_UA})

        assert resolve_client_type(request) is ClientType.WEB

    def test_header_is_case_insensitive(self):
        assert resolve_client_type(make_request({"X-Client-Type": "mobile"})) is ClientType.MOBILE

    def test_unparseable_header_falls_back_to_user_agent(self):
        request = make_request({"X-Client-Type": "tablet", "User-Agent": IPHONE_UA})

        assert resolve_client_type(request) is ClientType.MOBILE

    def test_unparseable_header_without_user_agent_is_web(self):
        assert resolve_client_type(make_request({"X-Client-Type": "tablet"})) is ClientType.WEB


class TestRefreshTokenExtraction:
    def test_body_wins_over_cookie(self):
        request = make_request(cookies={REFRESH_TOKEN_COOKIE: "from-cookie"})

        assert extract_refresh_token(RefreshTokenRequest(refreshToken="from-body"), request) == "from-body"

    def test_cookie_when_body_is_absent(self):
        request = make_request(cookies={REFRESH_TOKEN_COOKIE: "from-cookie"})

        assert extract_refresh_token(None, request) == "from-cookie"

    def test_cookie_when_body_has_no_token(self):
        request = make_request(cookies={REFRESH_TOKEN_COOKIE: "from-cookie"})

        assert extract_refresh_token(RefreshTokenRequest(), request) == "from-cookie"

    def test_no_token_anywhere(self):
        assert extract_refresh_token(RefreshTokenRequest(), make_request()) is None

    def test_access_cookie_is_not_a_refresh_token(self):
        request = make_request(cookies={ACCESS_TOKEN_COOKIE: "access"})

        assert extract_refresh_token(None, request) is None


class TestAccessTokenExtraction:
    def test_bearer_header_wins_over_cookie(self):
        request = make_request(
            {"Authorization": "Bearer from-header"}, cookies={ACCESS_TOKEN_COOKIE: "from-cookie"}
        )

        assert extract_access_token(request) == "from-header"

    def test_cookie_without_header(self):
        request = make_request(cookies={ACCESS_TOKEN_COOKIE: "from-cookie"})

        assert extract_access_token(request) == "from-cookie"

    def test_non_bearer_scheme_falls_back_to_cookie(self):
        request = make_request(
            {"Authorization": "Basic dXNlcjpwYXNz"}, cookies={ACCESS_TOKEN_COOKIE: "from-cookie"}
        )

        assert extract_access_token(request) == "from-cookie"

    def test_nothing(self):
        assert extract_access_token(make_request()) is None

    def test_lowercase_scheme_falls_back_to_cookie(self):
        request = make_request(
            {"Authorization": "bearer from-header"}, cookies={ACCESS_TOKEN_COOKIE: "from-cookie"}
        )

        assert extract_access_token(request) == "from-cookie"

    def test_bearer_scheme_without_token(self):
        request = make_request({"Authorization": "Bearer"}, cookies={ACCESS_TOKEN_COOKIE: "from-cookie"})

        assert extract_access_token(request) is None


class TestCookies:
    def test_attach_cookie_flags(self):
        response = Response()

        attach_cookie(response, "access_token", "abc", "/", 900)

        [header] = set_cookie_headers(response)
        assert header.startswith("access_token=abc;")
        assert "HttpOnly" in header
        assert "Secure" in header
        assert "Path=/" in header
        assert "Max-Age=900" in header

    def test_token_cookies_are_scoped(self, issuer):
        pair = issuer.create_token_pair(Principal(subject="alice"), ClientType.WEB)
        response = Response()

        attach_token_cookies(response, pair, issuer)

        access, refresh = set_cookie_headers(response)
        assert access.startswith(f"access_token={pair.access_token};")
        assert "Path=/;" in access
        assert "Max-Age=900" in access
        assert refresh.startswith(f"refresh_token={pair.refresh_token};")
        assert "Path=/auth/refresh" in refresh
        assert "Max-Age=86400" in refresh

    def test_clear_cookies(self):
        response = Response()

        clear_cookies(response)

        access, refresh = set_cookie_headers(response)
        assert access.startswith('access_token="";')
        assert "Max-Age=0" in access and "Path=/;" in access
        assert refresh.startswith('refresh_token="";')
        assert "Max-Age=0" in refresh and "Path=/auth/refresh" in refresh
