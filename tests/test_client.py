"""
Tests for the AltText.ai REST client: request construction, response
classification and the stale-connection retry.
"""
import json
from unittest.mock import Mock

import pytest
import requests
from urllib3.exceptions import ProtocolError

from alttext_mcp.api.client import AltTextClient, is_stale_connection
from alttext_mcp.api.models import AccountRecord, ImageList, ImageRecord, Pagination
from tests.conftest import API_KEY, BASE_URL, make_response, sent_body


def _broken_pipe():
    return requests.exceptions.ConnectionError(
        ProtocolError("Connection aborted.", BrokenPipeError(32, "Broken pipe"))
    )


def _connection_reset():
    return requests.exceptions.ConnectionError(
        ProtocolError("Connection aborted.", ConnectionResetError(104, "Connection reset by peer"))
    )


class TestConstruction:
    def test_default_base_url(self, session):
        client = AltTextClient(API_KEY, session=session)
        assert client.base_url == BASE_URL

    def test_trailing_slashes_stripped(self, session):
        client = AltTextClient(API_KEY, base_url="https://staging.alttext.ai/api/v1///", session=session)
        client.get_account()
        method, url = session.request.call_args.args
        assert url == "https://staging.alttext.ai/api/v1/account"

    def test_missing_api_key_rejected(self):
        with pytest.raises(ValueError):
            AltTextClient("")


class TestHeaders:
    def test_api_key_and_accept_sent(self, client, session):
        session.request.return_value = make_response(200, {"name": "Test"})
        client.get_account()

        headers = session.request.call_args.kwargs["headers"]
        assert headers["X-API-Key"] == API_KEY
        assert headers["Accept"] == "application/json"
        assert "Content-Type" not in headers
        assert "X-Client" not in headers

    def test_client_version_header(self, session):
        client = AltTextClient(API_KEY, client_version="1.0.0", session=session)
        client.get_account()
        assert session.request.call_args.kwargs["headers"]["X-Client"] == "mcp-server/1.0.0"

    def test_json_body_sets_content_type(self, client, session):
        client.create_image("https://example.com/photo.jpg")
        assert session.request.call_args.kwargs["headers"]["Content-Type"] == "application/json"

    def test_timeout_applied(self, client, session):
        client.get_account()
        assert session.request.call_args.kwargs["timeout"] == (10.0, 120.0)


class TestAccount:
    def test_get_account(self, client, session):
        session.request.return_value = make_response(
            200, {"name": "Test Account", "usage": 42, "usage_limit": 1000, "default_lang": "en"}
        )
        res = client.get_account()

        assert res.ok
        assert isinstance(res.value, AccountRecord)
        assert res.value.usage_limit == 1000
        assert session.request.call_args.args == ("GET", f"{BASE_URL}/account")

    def test_update_account_only_supplied_keys(self, client, session):
        client.update_account(name="New Name")

        method, url = session.request.call_args.args
        assert (method, url) == ("PATCH", f"{BASE_URL}/account")
        assert sent_body(session) == {"account": {"name": "New Name"}}

    def test_update_account_all_fields(self, client, session):
        client.update_account(
            name="n", webhook_url="https://example.com/hook", notification_email="a@example.com"
        )
        assert sent_body(session) == {
            "account": {
                "name": "n",
                "webhook_url": "https://example.com/hook",
                "notification_email": "a@example.com",
            }
        }


class TestCreateImage:
    url = "https://example.com/photo.jpg"

    def test_async_false_always_sent(self, client, session):
        session.request.return_value = make_response(200, {"asset_id": "abc123", "alt_text": "A photo"})
        res = client.create_image(self.url)

        assert res.value == ImageRecord(asset_id="abc123", alt_text="A photo")
        assert sent_body(session) == {"image": {"url": self.url}, "async": False}

    def test_overwrite_false_is_sent(self, client, session):
        client.create_image(self.url, overwrite=False)

        raw = session.request.call_args.kwargs["data"]
        assert '"overwrite":false' in raw
        assert sent_body(session)["overwrite"] is False

    def test_overwrite_omitted_when_not_given(self, client, session):
        client.create_image(self.url)
        assert "overwrite" not in sent_body(session)

    def test_options_split_between_envelopes(self, client, session):
        client.create_image(
            self.url,
            asset_id="custom-1",
            tags=["a"],
            metadata={"k": "v"},
            lang="en,fr",
            keywords=["bike"],
            negative_keywords=["car"],
            gpt_prompt="Describe {{AltText}}",
            max_chars=125,
            overwrite=True,
        )
        assert sent_body(session) == {
            "image": {"url": self.url, "asset_id": "custom-1", "tags": ["a"], "metadata": {"k": "v"}},
            "async": False,
            "lang": "en,fr",
            "keywords": ["bike"],
            "negative_keywords": ["car"],
            "gpt_prompt": "Describe {{AltText}}",
            "max_chars": 125,
            "overwrite": True,
        }

    def test_raw_upload_uses_json_body(self, client, session):
        client.create_image_from_raw("aGVsbG8=", lang="en")

        assert sent_body(session) == {"image": {"raw": "aGVsbG8="}, "async": False, "lang": "en"}
        assert "files" not in session.request.call_args.kwargs

    def test_translate_image(self, client, session):
        client.translate_image("abc123", "de")

        assert session.request.call_args.args == ("POST", f"{BASE_URL}/images")
        assert sent_body(session) == {"image": {"asset_id": "abc123"}, "lang": "de", "async": False}


class TestImageLibrary:
    def test_list_images_pagination_headers(self, client, session):
        session.request.return_value = make_response(
            200,
            {"images": [{"asset_id": "img1", "alt_text": "First"}]},
            headers={"current-page": "2", "page-items": "10", "total-pages": "5", "total-count": "47"},
        )
        res = client.list_images(page=2, limit=10)

        assert isinstance(res.value, ImageList)
        assert res.value.pagination == Pagination(current_page=2, page_items=10, total_pages=5, total_count=47)
        assert session.request.call_args.kwargs["params"] == {"page": "2", "limit": "10"}

    def test_list_images_pagination_defaults(self, client, session):
        session.request.return_value = make_response(200, {"images": []})
        res = client.list_images()

        p = res.value.pagination
        assert (p.current_page, p.page_items, p.total_pages, p.total_count) == (1, 20, 1, 0)
        assert "params" not in session.request.call_args.kwargs

    def test_non_numeric_header_falls_back(self, client, session):
        session.request.return_value = make_response(
            200, {"images": []}, headers={"current-page": "abc", "total-count": "12"}
        )
        p = client.list_images().value.pagination
        assert p.current_page == 1
        assert p.total_count == 12

    def test_list_images_filters(self, client, session):
        client.list_images(url="https://example.com/photo.jpg", sort="created_at", direction="ASC")
        assert session.request.call_args.kwargs["params"] == {
            "url": "https://example.com/photo.jpg",
            "sort": "created_at",
            "direction": "ASC",
        }

    def test_search_sends_q(self, client, session):
        session.request.return_value = make_response(200, {"images": [{"asset_id": "sun1", "alt_text": "A sunset"}]})
        res = client.search_images("sunset", limit=5)

        assert session.request.call_args.args == ("GET", f"{BASE_URL}/images/search")
        assert session.request.call_args.kwargs["params"] == {"q": "sunset", "limit": "5"}
        assert res.value.images[0].asset_id == "sun1"

    def test_get_image_encodes_slash(self, client, session):
        client.get_image("shp-123/456", lang="fr")

        method, url = session.request.call_args.args
        assert url == f"{BASE_URL}/images/shp-123%2F456"
        assert session.request.call_args.kwargs["params"] == {"lang": "fr"}

    def test_update_image(self, client, session):
        client.update_image("a b", alt_text="New", overwrite=False)

        method, url = session.request.call_args.args
        assert (method, url) == ("PATCH", f"{BASE_URL}/images/a%20b")
        assert sent_body(session) == {"image": {"alt_text": "New"}, "overwrite": False}

    def test_delete_image_empty_body(self, client, session):
        session.request.return_value = make_response(204, raw=b"")
        res = client.delete_image("abc123")

        assert res.ok
        assert res.value is None
        assert session.request.call_args.args == ("DELETE", f"{BASE_URL}/images/abc123")


class TestBulkAndScrape:
    def test_bulk_create_is_multipart(self, client, session):
        session.request.return_value = make_response(200, {"rows": 3, "row_errors": []})
        res = client.bulk_create(b"url\nhttps://example.com/a.jpg\n", filename="images.csv", email="me@example.com")

        kwargs = session.request.call_args.kwargs
        assert session.request.call_args.args == ("POST", f"{BASE_URL}/images/bulk_create")
        assert kwargs["files"] == {"file": ("images.csv", b"url\nhttps://example.com/a.jpg\n", "text/csv")}
        assert kwargs["data"] == {"email": "me@example.com"}
        assert "Content-Type" not in kwargs["headers"]
        assert kwargs["headers"]["X-API-Key"] == API_KEY
        assert kwargs["timeout"] == (10.0, 120.0)
        assert res.value.rows == 3

    def test_bulk_create_without_email(self, client, session):
        client.bulk_create(b"url\n")
        assert session.request.call_args.kwargs["data"] == {}

    def test_scrape_page_body(self, client, session):
        session.request.return_value = make_response(
            200, {"scraped_images": [{"src": "a.jpg", "width": 10, "height": 20}], "total_processed": 1}
        )
        res = client.scrape_page("https://example.com/page", include_existing=False, lang="en")

        assert sent_body(session) == {
            "page_scrape": {"url": "https://example.com/page"},
            "include_existing": False,
            "lang": "en",
        }
        assert res.value.total_processed == 1
        assert res.value.scraped_images[0].width == 10

    def test_scrape_page_html_override(self, client, session):
        client.scrape_page("https://example.com/page", html="<img src='a.jpg'>")
        assert sent_body(session)["page_scrape"] == {
            "url": "https://example.com/page",
            "html": "<img src='a.jpg'>",
        }


class TestErrorClassification:
    def test_validation_errors_joined(self, client, session):
        session.request.return_value = make_response(422, {"errors": {"url": ["is invalid", "must be public"]}})
        res = client.create_image("https://example.com/x.jpg")

        assert not res.ok
        assert res.error.status == 422
        assert res.error.message == "is invalid, must be public"
        assert res.error.errors == {"url": ["is invalid", "must be public"]}

    def test_top_level_error_and_code(self, client, session):
        session.request.return_value = make_response(
            401, {"error": "Invalid API key", "error_code": "unauthorized"}
        )
        res = client.get_account()

        assert res.error.status == 401
        assert res.error.error_code == "unauthorized"
        assert res.error.message == "Invalid API key"

    def test_non_json_body(self, client, session):
        session.request.return_value = make_response(502, raw=b"<html>Bad Gateway</html>")
        res = client.get_account()

        assert res.error.status == 502
        assert res.error.message == "HTTP 502"
        assert res.error.error_code is None

    def test_unwrap_raises(self, client, session):
        session.request.return_value = make_response(404, {"error": "Not found"})
        with pytest.raises(Exception) as exc_info:
            client.get_image("missing").unwrap()
        assert str(exc_info.value) == "Not found"


class TestConnectionErrors:
    def test_refused_not_retried(self, client, session):
        session.request.side_effect = requests.exceptions.ConnectionError(
            "Failed to establish a new connection: [Errno 111] Connection refused"
        )
        res = client.get_account()

        assert session.request.call_count == 1
        assert res.error.status == 0
        assert res.error.error_code == "connection_error"
        assert res.error.message.startswith("Could not connect to AltText.ai API:")

    def test_timeout_not_retried(self, client, session):
        session.request.side_effect = requests.exceptions.ReadTimeout("Read timed out. (read timeout=120)")
        res = client.get_account()

        assert session.request.call_count == 1
        assert res.error.is_connection_error

    def test_broken_pipe_retried_once(self, client, session):
        session.request.side_effect = [_broken_pipe(), make_response(200, {"name": "Test"})]
        res = client.get_account()

        assert res.ok
        assert res.value.name == "Test"
        assert session.request.call_count == 2
        session.close.assert_called_once()

    def test_repeated_reset_gives_connection_error(self, client, session):
        session.request.side_effect = [_connection_reset(), _connection_reset()]
        res = client.get_account()

        assert session.request.call_count == 2
        assert res.error.status == 0
        assert res.error.error_code == "connection_error"

    def test_multipart_retry(self, client, session):
        session.request.side_effect = [_broken_pipe(), make_response(200, {"rows": 1})]
        res = client.bulk_create(b"url\n")

        assert res.value.rows == 1
        first, second = session.request.call_args_list
        assert first.kwargs["files"] == second.kwargs["files"]

    def test_http_errors_never_retried(self, client, session):
        session.request.return_value = make_response(500, {"error": "boom"})
        client.get_account()
        assert session.request.call_count == 1


class TestStaleConnectionPredicate:
    def test_direct_errors(self):
        assert is_stale_connection(BrokenPipeError())
        assert is_stale_connection(ConnectionResetError())

    def test_wrapped_in_args(self):
        assert is_stale_connection(_broken_pipe())

    def test_wrapped_in_context(self):
        try:
            try:
                raise ConnectionResetError(104, "reset")
            except ConnectionResetError:
                raise requests.exceptions.ConnectionError("request failed")
        except requests.exceptions.ConnectionError as e:
            assert is_stale_connection(e)

    def test_refused_and_timeout_are_not_stale(self):
        assert not is_stale_connection(ConnectionRefusedError(111, "refused"))
        assert not is_stale_connection(requests.exceptions.ConnectTimeout("timed out"))
