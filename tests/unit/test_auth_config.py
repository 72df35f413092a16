"""Unit tests for credential and base-URL resolution."""

from unittest.mock import AsyncMock

import pytest

from docling_ocr.config.constants import DEFAULT_DOCLING_BASE_URL
from docling_ocr.core.auth import (
    get_env_var_name,
    load_docling_auth_config,
    needs_env_load,
    resolve_config_value,
)
from docling_ocr.models.dto import DoclingOCRConfig, OCRContext, SourceFile


def make_context(loader, *, api_key=None, base_url=None, user_id="user-1"):
    return OCRContext(
        file=SourceFile(path="/tmp/doc.pdf", original_name="doc.pdf", size=10),
        load_auth_values=loader,
        user_id=user_id,
        ocr_config=DoclingOCRConfig(api_key=api_key, base_url=base_url),
    )


class TestPlaceholderHelpers:
    """Tests for placeholder detection and name extraction."""

    def test_placeholder_needs_load(self):
        """Test ${NAME} values are loaded from secrets."""
        assert needs_env_load("${DOCLING_API_KEY}") is True

    def test_blank_needs_load(self):
        """Test empty and whitespace-only values are loaded from secrets."""
        assert needs_env_load("") is True
        assert needs_env_load("   ") is True

    def test_literal_does_not_need_load(self):
        """Test a plain literal is used directly."""
        assert needs_env_load("sk-abc") is False

    def test_env_var_name_from_placeholder(self):
        """Test the embedded name wins over the default."""
        assert get_env_var_name("${MY_DOCLING_KEY}", "DOCLING_API_KEY") == "MY_DOCLING_KEY"

    def test_env_var_name_default(self):
        """Test non-placeholders fall back to the default name."""
        assert get_env_var_name("", "DOCLING_API_KEY") == "DOCLING_API_KEY"
        assert get_env_var_name("literal", "DOCLING_API_KEY") == "DOCLING_API_KEY"


class TestResolveConfigValue:
    """Tests for the literal, secret, default resolution chain."""

    def test_literal_wins(self):
        """Test a literal is returned even when a secret exists."""
        assert resolve_config_value("lit", "K", {"K": "secret"}) == "lit"

    def test_secret_used_for_placeholder(self):
        """Test a placeholder resolves through the loaded secrets."""
        assert resolve_config_value("${CUSTOM}", "K", {"CUSTOM": "secret"}) == "secret"

    def test_default_when_secret_missing(self):
        """Test the default applies when the secret is absent or empty."""
        assert resolve_config_value("", "K", {"K": ""}, "fallback") == "fallback"
        assert resolve_config_value("", "K", {}, "fallback") == "fallback"

    def test_empty_when_nothing_resolves(self):
        """Test an unresolved value is an empty string, not an error."""
        assert resolve_config_value("", "K", {}) == ""


class TestLoadDoclingAuthConfig:
    """Tests for loader invocation and the resulting AuthConfig."""

    @pytest.mark.asyncio
    async def test_literals_skip_loader(self):
        """Test the loader is never called when both values are literals."""
        loader = AsyncMock(return_value={})
        auth = await load_docling_auth_config(
            make_context(loader, api_key="k", base_url="https://d.example")
        )

        assert auth.api_key == "k"
        assert auth.base_url == "https://d.example"
        loader.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_both_placeholders_single_loader_call(self):
        """Test both defaults are requested in one call, base URL optional."""
        loader = AsyncMock(
            return_value={"DOCLING_BASE_URL": "https://env.example", "DOCLING_API_KEY": "env-key"}
        )
        auth = await load_docling_auth_config(
            make_context(loader, api_key="${DOCLING_API_KEY}", base_url="${DOCLING_BASE_URL}")
        )

        loader.assert_awaited_once_with(
            user_id="user-1",
            auth_fields=["DOCLING_BASE_URL", "DOCLING_API_KEY"],
            optional={"DOCLING_BASE_URL"},
        )
        assert auth.api_key == "env-key"
        assert auth.base_url == "https://env.example"

    @pytest.mark.asyncio
    async def test_empty_base_url_falls_back_to_default(self):
        """Test an unresolvable base URL uses the public default."""
        loader = AsyncMock(return_value={"DOCLING_BASE_URL": None})
        auth = await load_docling_auth_config(make_context(loader, api_key="k", base_url=""))

        loader.assert_awaited_once_with(
            user_id="user-1",
            auth_fields=["DOCLING_BASE_URL"],
            optional={"DOCLING_BASE_URL"},
        )
        assert auth.api_key == "k"
        assert auth.base_url == DEFAULT_DOCLING_BASE_URL

    @pytest.mark.asyncio
    async def test_empty_api_key_loaded_from_secrets(self):
        """Test a blank key is requested under its default name and is required."""
        loader = AsyncMock(return_value={"DOCLING_API_KEY": "from-secrets"})
        auth = await load_docling_auth_config(
            make_context(loader, api_key="", base_url="https://d.example")
        )

        loader.assert_awaited_once_with(
            user_id="user-1", auth_fields=["DOCLING_API_KEY"], optional=set()
        )
        assert auth.api_key == "from-secrets"

    @pytest.mark.asyncio
    async def test_custom_placeholder_name(self):
        """Test a custom placeholder name is what gets requested."""
        loader = AsyncMock(return_value={"TEAM_DOCLING_KEY": "team-key"})
        auth = await load_docling_auth_config(
            make_context(loader, api_key="${TEAM_DOCLING_KEY}", base_url="https://d.example")
        )

        loader.assert_awaited_once_with(
            user_id="user-1", auth_fields=["TEAM_DOCLING_KEY"], optional=set()
        )
        assert auth.api_key == "team-key"

    @pytest.mark.asyncio
    async def test_missing_key_resolves_empty(self):
        """Test an unresolved key comes back empty for the caller to reject."""
        loader = AsyncMock(return_value={})
        auth = await load_docling_auth_config(make_context(loader))

        assert auth.api_key == ""
        assert auth.base_url == DEFAULT_DOCLING_BASE_URL

    @pytest.mark.asyncio
    async def test_no_user_passes_empty_user_id(self):
        """Test a missing user is passed to the loader as an empty string."""
        loader = AsyncMock(return_value={"DOCLING_API_KEY": "k"})
        await load_docling_auth_config(make_context(loader, user_id=None))

        assert loader.await_args.kwargs["user_id"] == ""

    @pytest.mark.asyncio
    async def test_no_ocr_config_loads_both(self):
        """Test a context without an OCR block resolves everything from secrets."""
        loader = AsyncMock(return_value={"DOCLING_API_KEY": "k"})
        context = OCRContext(
            file=SourceFile(path="/tmp/doc.pdf", original_name="doc.pdf", size=10),
            load_auth_values=loader,
        )
        auth = await load_docling_auth_config(context)

        assert loader.await_args.kwargs["auth_fields"] == ["DOCLING_BASE_URL", "DOCLING_API_KEY"]
        assert auth.api_key == "k"

    @pytest.mark.asyncio
    async def test_explicit_config_overrides_context_block(self):
        """Test a merged config, not the raw context block, drives resolution."""
        loader = AsyncMock(return_value={})
        auth = await load_docling_auth_config(
            make_context(loader),
            DoclingOCRConfig(api_key="env-key", base_url="https://env.example"),
        )

        loader.assert_not_awaited()
        assert auth.api_key == "env-key"
        assert auth.base_url == "https://env.example"

    @pytest.mark.asyncio
    async def test_loader_failure_propagates(self):
        """Test secret store errors are not swallowed."""
        loader = AsyncMock(side_effect=RuntimeError("vault down"))

        with pytest.raises(RuntimeError, match="vault down"):
            await load_docling_auth_config(make_context(loader))
