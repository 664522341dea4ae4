"""Tests for approval providers."""

import io
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from intent_gate.governance.approval import (
    ApprovalProviderFactory,
    AutoApprovalProvider,
    FastMCPElicitProvider,
    StaticApprovalProvider,
    SystemdFallbackProvider,
    TerminalPromptProvider,
    create_approval_provider,
    parse_decision,
)


def elicit_result(action, data=None):
    result = MagicMock()
    result.action = action
    result.data = data
    return result


class TestParseDecision:
    """Tests for free-form answer parsing."""

    @pytest.mark.parametrize("answer", ["approve", "YES", " y\n", True, {"decision": "approved"}])
    def test_approvals(self, answer):
        assert parse_decision(answer) is True

    @pytest.mark.parametrize("answer", ["reject", "No", "denied", False, {"value": "n"}])
    def test_rejections(self, answer):
        assert parse_decision(answer) is False

    @pytest.mark.parametrize("answer", [None, "", "maybe", {}])
    def test_undecided(self, answer):
        assert parse_decision(answer) is None


class TestFastMCPElicitProvider:
    """Tests for FastMCPElicitProvider."""

    @pytest.mark.asyncio
    async def test_accept_approves(self):
        ctx = MagicMock()
        ctx.elicit = AsyncMock(return_value=elicit_result("accept"))
        provider = FastMCPElicitProvider(ctx)

        assert await provider.request_approval("Approve destructive action?") is True
        message = ctx.elicit.call_args.args[0]
        assert message.startswith("Approve destructive action?")
        assert ctx.elicit.call_args.kwargs == {"response_type": None}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["decline", "cancel"])
    async def test_decline_or_cancel_rejects(self, action):
        ctx = MagicMock()
        ctx.elicit = AsyncMock(return_value=elicit_result(action))
        assert await FastMCPElicitProvider(ctx).request_approval("?") is False

    @pytest.mark.asyncio
    async def test_accept_with_reject_text_rejects(self):
        ctx = MagicMock()
        ctx.elicit = AsyncMock(return_value=elicit_result("accept", data="no"))
        assert await FastMCPElicitProvider(ctx).request_approval("?") is False

    @pytest.mark.asyncio
    async def test_elicit_error_rejects(self):
        ctx = MagicMock()
        ctx.elicit = AsyncMock(side_effect=RuntimeError("client does not support elicitation"))
        assert await FastMCPElicitProvider(ctx).request_approval("?") is False

    @pytest.mark.asyncio
    async def test_without_context_unavailable(self):
        provider = FastMCPElicitProvider()
        assert await provider.is_available() is False
        assert await provider.request_approval("?") is False

    @pytest.mark.asyncio
    async def test_set_context_binds_current_request(self):
        ctx = MagicMock()
        ctx.elicit = AsyncMock(return_value=elicit_result("accept"))
        provider = FastMCPElicitProvider()

        provider.set_context(ctx)

        assert await provider.request_approval("?") is True
        ctx.elicit.assert_awaited_once()


class TestTerminalPromptProvider:
    """Tests for TerminalPromptProvider."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer,expected", [("yes\n", True), ("no\n", False), ("\n", False)])
    async def test_reads_answer(self, answer, expected):
        provider = TerminalPromptProvider(stream=io.StringIO(answer))
        assert await provider.request_approval("Approve?") is expected

    @pytest.mark.asyncio
    async def test_non_tty_unavailable(self):
        assert await TerminalPromptProvider(stream=io.StringIO("")).is_available() is False


class TestSystemdFallbackProvider:
    """Tests for SystemdFallbackProvider."""

    @pytest.mark.asyncio
    async def test_parses_answer(self):
        proc = MagicMock()
        proc.communicate = AsyncMock(return_value=(b"yes\n", b""))
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            assert await SystemdFallbackProvider().request_approval("Approve?") is True

    @pytest.mark.asyncio
    async def test_spawn_failure_rejects(self):
        with patch(
            "asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError("systemd-ask-password")),
        ):
            provider = SystemdFallbackProvider()
            assert await provider.request_approval("Approve?") is False
            assert await provider.is_available() is False


class TestStaticApprovalProvider:
    """Tests for the static stub."""

    @pytest.mark.asyncio
    async def test_records_prompts(self):
        provider = StaticApprovalProvider(approve=False)
        assert await provider.request_approval("one") is False
        assert await provider.request_approval("two") is False
        assert provider.prompts == ["one", "two"]


class TestApprovalProviderFactory:
    """Tests for provider selection."""

    @pytest.mark.asyncio
    async def test_explicit_elicit_with_context(self):
        ctx = MagicMock()
        ctx.elicit = AsyncMock()
        provider = await create_approval_provider("fastmcp_elicit", ctx)
        assert isinstance(provider, FastMCPElicitProvider)

    @pytest.mark.asyncio
    async def test_auto_prefers_elicit(self):
        ctx = MagicMock()
        ctx.elicit = AsyncMock()
        provider = await ApprovalProviderFactory.create_provider("auto", ctx)
        assert isinstance(provider, FastMCPElicitProvider)

    @pytest.mark.asyncio
    async def test_nothing_available_raises(self):
        with patch.object(TerminalPromptProvider, "is_available", AsyncMock(return_value=False)), \
                patch.object(SystemdFallbackProvider, "is_available", AsyncMock(return_value=False)):
            with pytest.raises(RuntimeError, match="No approval providers available"):
                await ApprovalProviderFactory.create_provider("auto", None)

    @pytest.mark.asyncio
    async def test_unknown_name_falls_back_to_auto(self):
        with patch.object(TerminalPromptProvider, "is_available", AsyncMock(return_value=True)):
            provider = await ApprovalProviderFactory.create_provider("carrier_pigeon", None)
        assert isinstance(provider, TerminalPromptProvider)

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("terminal", TerminalPromptProvider),
            ("systemd_fallback", SystemdFallbackProvider),
            ("fastmcp_elicit", FastMCPElicitProvider),
            ("auto", AutoApprovalProvider),
            ("carrier_pigeon", AutoApprovalProvider),
        ],
    )
    def test_for_server(self, name, expected):
        assert type(ApprovalProviderFactory.for_server(name)) is expected


class TestAutoApprovalProvider:
    """Tests for per-prompt provider selection."""

    @pytest.mark.asyncio
    async def test_prefers_bound_request_context(self):
        ctx = MagicMock()
        ctx.elicit = AsyncMock(return_value=elicit_result("accept"))
        provider = AutoApprovalProvider()

        provider.set_context(ctx)

        assert await provider.request_approval("Approve?") is True
        ctx.elicit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_falls_back_to_terminal(self):
        with patch.object(TerminalPromptProvider, "is_available", AsyncMock(return_value=True)), \
                patch.object(
                    TerminalPromptProvider, "request_approval", AsyncMock(return_value=False)
                ) as ask:
            assert await AutoApprovalProvider().request_approval("Approve?") is False
        ask.assert_awaited_once_with("Approve?")

    @pytest.mark.asyncio
    async def test_nothing_available_rejects(self):
        with patch.object(TerminalPromptProvider, "is_available", AsyncMock(return_value=False)), \
                patch.object(SystemdFallbackProvider, "is_available", AsyncMock(return_value=False)):
            provider = AutoApprovalProvider()
            assert await provider.is_available() is False
            assert await provider.request_approval("Approve?") is False
