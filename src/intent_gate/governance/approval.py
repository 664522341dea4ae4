"""Approval provider system for destructive-action confirmation.

Supports multiple approval mechanisms:
- FastMCP ctx.elicit (client-side prompts, production)
- Terminal prompt on stdin (CLI)
- systemd-ask-password (headless fallback)
- Static answers (tests and scripted runs)
- Auto selection among the above, per prompt

Every provider answers a one-line prompt with True (approved) or False.
A provider may suspend for as long as a human takes to answer; callers
wanting bounded latency wrap ``request_approval`` in their own timeout.
"""

import asyncio
import os
import sys
from abc import ABC, abstractmethod
from contextvars import ContextVar
from typing import Any, Optional

from loguru import logger

# Per-request FastMCP context; each MCP request runs in its own task
_elicit_context: ContextVar[Any] = ContextVar("intent_gate_elicit_context", default=None)

_APPROVE_WORDS = {"approve", "approved", "yes", "y"}
_REJECT_WORDS = {"reject", "rejected", "deny", "denied", "no", "n"}


def parse_decision(raw_value: Any) -> Optional[bool]:
    """Map a free-form answer to True/False, or None when it is neither."""
    if raw_value is None:
        return None
    if isinstance(raw_value, bool):
        return raw_value
    if isinstance(raw_value, dict):
        lowered = {str(k).lower(): v for k, v in raw_value.items()}
        return parse_decision(lowered.get("decision", lowered.get("value")))
    normalized = str(raw_value).strip().lower()
    if normalized in _APPROVE_WORDS:
        return True
    if normalized in _REJECT_WORDS:
        return False
    return None


class ApprovalProvider(ABC):
    """Abstract base class for approval providers."""

    @abstractmethod
    async def request_approval(self, prompt: str) -> bool:
        """Ask a human to approve the action described by ``prompt``.

        Returns:
            True if approved, False if rejected or no answer was obtained
        """

    @abstractmethod
    async def is_available(self) -> bool:
        """Check if this provider can currently ask anyone."""

    @abstractmethod
    def get_name(self) -> str:
        """Get human-readable name of this provider."""


class FastMCPElicitProvider(ApprovalProvider):
    """
    Approval provider using FastMCP ctx.elicit() on the calling client.

    The context bound with ``set_context`` is task-local, so one provider
    can serve concurrent requests; the constructor context is the fallback.
    """

    def __init__(self, context: Any = None):
        self._default_context = context

    @property
    def _context(self) -> Any:
        return _elicit_context.get() or self._default_context

    def set_context(self, context: Any) -> None:
        """Bind the FastMCP context of the current request for elicitation."""
        _elicit_context.set(context)

    async def is_available(self) -> bool:
        return (
            self._context is not None
            and hasattr(self._context, "elicit")
            and callable(self._context.elicit)
        )

    async def request_approval(self, prompt: str) -> bool:
        if not await self.is_available():
            logger.error("FastMCP context not available for approval")
            return False

        try:
            result = await self._context.elicit(
                f"{prompt}\n\nAccept to approve, decline to reject.",
                response_type=None,
            )
        except Exception as e:
            logger.error(f"FastMCP elicit approval failed: {e}")
            return False

        action = getattr(result, "action", None)
        if action is not None and action != "accept":
            return False

        # Clients that answer with text instead of accept/decline
        decision = parse_decision(getattr(result, "data", None))
        return decision is not False

    def get_name(self) -> str:
        return "FastMCP Elicit"


class TerminalPromptProvider(ApprovalProvider):
    """Approval provider reading a yes/no answer from an interactive terminal."""

    def __init__(self, stream=None):
        self._stream = stream

    async def is_available(self) -> bool:
        stream = self._stream or sys.stdin
        try:
            return stream.isatty()
        except (AttributeError, ValueError):
            return False

    def _ask(self, prompt: str) -> str:
        stream = self._stream or sys.stdin
        sys.stderr.write(f"{prompt} [approve/reject]: ")
        sys.stderr.flush()
        return stream.readline()

    async def request_approval(self, prompt: str) -> bool:
        try:
            loop = asyncio.get_running_loop()
            answer = await loop.run_in_executor(None, self._ask, prompt)
        except Exception as e:
            logger.error(f"Terminal approval failed: {e}")
            return False
        return parse_decision(answer) is True

    def get_name(self) -> str:
        return "Terminal"


class SystemdFallbackProvider(ApprovalProvider):
    """Approval provider using systemd-ask-password for headless sessions."""

    async def is_available(self) -> bool:
        try:
            proc = await asyncio.create_subprocess_exec(
                "which",
                "systemd-ask-password",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            await proc.communicate()
            return proc.returncode == 0
        except Exception:
            return False

    async def request_approval(self, prompt: str) -> bool:
        try:
            proc = await asyncio.create_subprocess_exec(
                "systemd-ask-password",
                "--echo",
                f"{prompt} (yes/no)",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, _ = await proc.communicate()
        except Exception as e:
            logger.error(f"systemd fallback approval failed: {e}")
            return False
        return parse_decision(stdout.decode(errors="replace")) is True

    def get_name(self) -> str:
        return "systemd Fallback"


class StaticApprovalProvider(ApprovalProvider):
    """Provider that answers every prompt the same way and records the prompts."""

    def __init__(self, approve: bool = True):
        self.approve = approve
        self.prompts: list[str] = []

    async def is_available(self) -> bool:
        return True

    async def request_approval(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.approve

    def get_name(self) -> str:
        return "Static"


class AutoApprovalProvider(FastMCPElicitProvider):
    """
    Provider that picks the first available mechanism for each prompt.

    Elicitation on the calling client wins whenever the current request
    bound a context; otherwise the terminal and then systemd are tried.
    """

    async def _select(self) -> Optional[ApprovalProvider]:
        try:
            return await create_approval_provider("auto", self._context)
        except RuntimeError as e:
            logger.error(f"Approval unavailable: {e}")
            return None

    async def is_available(self) -> bool:
        return await self._select() is not None

    async def request_approval(self, prompt: str) -> bool:
        provider = await self._select()
        if provider is None:
            return False
        return await provider.request_approval(prompt)

    def get_name(self) -> str:
        return "Auto"


class ApprovalProviderFactory:
    """Factory for creating and selecting approval providers."""

    PROVIDERS = {
        "fastmcp_elicit": FastMCPElicitProvider,
        "terminal": TerminalPromptProvider,
        "systemd_fallback": SystemdFallbackProvider,
    }

    @classmethod
    async def create_provider(
        cls, provider_name: Optional[str] = None, context: Any = None
    ) -> ApprovalProvider:
        """Create approval provider based on configuration.

        Args:
            provider_name: Explicit provider name or "auto" for auto-selection
            context: FastMCP context (for FastMCP elicit provider)

        Returns:
            First available approval provider

        Raises:
            RuntimeError: If no providers are available
        """
        preference = provider_name or os.getenv("APPROVAL_PROVIDER", "auto")

        if preference != "auto":
            provider_cls = cls.PROVIDERS.get(preference)
            if provider_cls is None:
                logger.warning(f"Unknown approval provider {preference}, falling back to auto")
            else:
                explicit = (
                    provider_cls(context)
                    if provider_cls is FastMCPElicitProvider
                    else provider_cls()
                )
                if await explicit.is_available():
                    logger.info(f"Using explicit approval provider: {explicit.get_name()}")
                    return explicit
                logger.warning(
                    f"Requested provider {preference} not available, falling back to auto"
                )

        providers = [
            FastMCPElicitProvider(context),
            TerminalPromptProvider(),
            SystemdFallbackProvider(),
        ]
        for provider in providers:
            if await provider.is_available():
                logger.info(f"Auto-selected approval provider: {provider.get_name()}")
                return provider

        raise RuntimeError(
            "No approval providers available. Run inside an MCP client that supports "
            "elicitation, attach a terminal, or ensure systemd is available."
        )

    @classmethod
    def for_server(cls, provider_name: str) -> ApprovalProvider:
        """Provider for a long-running server, chosen by APPROVAL_PROVIDER.

        ``auto`` defers the choice to each prompt, so it can follow the
        request context bound by the middleware.
        """
        provider_cls = cls.PROVIDERS.get(provider_name)
        if provider_cls is None:
            if provider_name != "auto":
                logger.warning(f"Unknown approval provider {provider_name}, using auto")
            return AutoApprovalProvider()
        return provider_cls()


async def create_approval_provider(
    provider_name: Optional[str] = None, context: Any = None
) -> ApprovalProvider:
    """Shortcut for ApprovalProviderFactory.create_provider()."""
    return await ApprovalProviderFactory.create_provider(provider_name, context)
