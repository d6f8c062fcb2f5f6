"""
Identifier generation pipeline.

This module provides the primary API for creating new identifiers. It
combines the layout plan, payload strategies, metadata, checksums and
formatting, and consults the context's collaborators for rate limiting,
collision detection and auditing.

Pipeline:
    plan layout (all config errors raised here)
    -> rate limit check
    -> build metadata
    -> payload for the core length -> case transform -> append metadata
    -> insert checksums -> embed marker -> separators -> prefix/suffix
    -> collision claim (regenerate core only, at most 10 times)
    -> audit

Example:
    >>> from sigid.core.ids import generate_id
    >>> identifier = generate_id({"length": 16, "prefix": "USER", "separator": "_"})
    >>> identifier.startswith("USER_")
    True
"""

import logging
from typing import Any

from sigid.core.config.models import AuditLevel, ConfigLike, IdentifierConfig, as_config
from sigid.core.exceptions import GenerationExhaustedError, RateLimitedError
from sigid.core.ids.charset import to_base36
from sigid.core.ids.checksum import compute_checksums, insert_checksums
from sigid.core.ids.context import IdentifierContext, aresolve, get_default_context, resolve
from sigid.core.ids.formatter import (
    apply_case,
    embed_marker,
    encode_marker,
    insert_separators,
    wrap,
)
from sigid.core.ids.layout import IdentifierPlan, plan_identifier
from sigid.core.ids.metadata import COUNTER_MODULUS, COUNTER_WIDTH, build_metadata
from sigid.core.ids.payload import PayloadGenerator
from sigid.core.security.audit import AuditEvent, create_audit_event, hash_identifier
from sigid.core.security.stores import CollisionStore

logger = logging.getLogger(__name__)

MAX_COLLISION_RETRIES = 10


def _claim(store: CollisionStore, identifier: str) -> bool:
    """Record ``identifier`` in ``store``; False if it was already issued."""
    add_if_absent = getattr(store, "add_if_absent", None)
    if add_if_absent is not None:
        return resolve(add_if_absent(identifier), "CollisionStore.add_if_absent")
    if resolve(store.has(identifier), "CollisionStore.has"):
        return False
    resolve(store.add(identifier), "CollisionStore.add")
    return True


async def _aclaim(store: CollisionStore, identifier: str) -> bool:
    add_if_absent = getattr(store, "add_if_absent", None)
    if add_if_absent is not None:
        return await aresolve(add_if_absent(identifier))
    if await aresolve(store.has(identifier)):
        return False
    await aresolve(store.add(identifier))
    return True


class IdentifierGenerator:
    """
    Generates identifiers using the state in an IdentifierContext.

    Independent generators with independent contexts share nothing, which
    keeps tests isolated and lets several configurations coexist in one
    process.

    Example:
        >>> generator = IdentifierGenerator(IdentifierContext())
        >>> len(generator.generate({"length": 20, "checksum": True}))
        20
    """

    def __init__(self, context: IdentifierContext | None = None) -> None:
        self.context = context or IdentifierContext()
        self.payloads = PayloadGenerator(self.context.entropy_pool)

    # -------------------------------------------------------------------------
    # Composition
    # -------------------------------------------------------------------------

    def _assemble(self, plan: IdentifierPlan, metadata: str, extra: str = "") -> str:
        config = plan.config
        core = self.payloads.generate(config, plan.alphabet, plan.core_length, metadata, extra)
        content = apply_case(core, config.case) + metadata

        body = content
        if config.checksum:
            blocks = compute_checksums(
                content,
                config.checksum_count,
                config.checksum_length,
                config.algorithm,
                config.secret,
            )
            body = insert_checksums(content, blocks, plan.checksum_spans)
        if plan.marker_length:
            body = embed_marker(body, encode_marker(config.security.hidden_data))

        formatted = insert_separators(body, config.separator, config.separator_length)
        return wrap(formatted, config.prefix, config.suffix, config.separator)

    def _retry_fragment(self, attempt: int) -> str:
        value = self.context.counter.next() % COUNTER_MODULUS
        return f"{to_base36(value, COUNTER_WIDTH)}{attempt}"

    def _generation_event(
        self,
        config: IdentifierConfig,
        identifier: str,
        success: bool,
        **details: Any,
    ) -> AuditEvent | None:
        audit = config.security.audit
        if not audit.enabled or audit.level == AuditLevel.NONE:
            return None
        metadata: dict[str, Any] = dict(details)
        if audit.level == AuditLevel.FULL:
            metadata.update(
                length=config.length,
                mode=config.mode.value,
                algorithm=config.algorithm.value,
                checksum=config.checksum,
            )
        return create_audit_event("generate", identifier, success, metadata)

    # -------------------------------------------------------------------------
    # Sync API
    # -------------------------------------------------------------------------

    def _emit(self, event: AuditEvent | None) -> None:
        if event is not None:
            resolve(self.context.audit_sink.log(event), "AuditSink.log")

    def generate(self, config: ConfigLike | None = None) -> str:
        """
        Generate one identifier.

        Raises:
            ConfigurationError: If the config cannot produce a valid identifier
            RateLimitedError: If the rate limiter rejects the request
            GenerationExhaustedError: If collision retries run out
            IdentifierError: If a collaborator returns an awaitable
        """
        cfg = as_config(config)
        plan = plan_identifier(cfg)
        security = cfg.security

        if security.rate_limit is not None:
            limit = security.rate_limit
            allowed = resolve(
                self.context.rate_limiter.check(limit.identifier, limit.max_requests, limit.window_ms),
                "RateLimiter.check",
            )
            if not allowed:
                self._emit(self._generation_event(cfg, limit.identifier, False, reason="rate_limited"))
                raise RateLimitedError(limit.identifier, limit.max_requests, limit.window_ms)

        metadata = build_metadata(cfg, plan.metadata, self.context.counter)
        identifier = self._assemble(plan, metadata)
        attempts = 0

        if security.collision_detection:
            store = self.context.collision_store
            while not _claim(store, identifier):
                if attempts >= MAX_COLLISION_RETRIES:
                    self._emit(
                        self._generation_event(cfg, identifier, False, reason="collision_exhausted")
                    )
                    raise GenerationExhaustedError(attempts)
                attempts += 1
                logger.debug("Collision on attempt %d, regenerating core", attempts)
                identifier = self._assemble(plan, metadata, self._retry_fragment(attempts))

        self._emit(self._generation_event(cfg, identifier, True, attempts=attempts))
        logger.debug("Generated identifier %s", hash_identifier(identifier))
        return identifier

    # -------------------------------------------------------------------------
    # Async API
    # -------------------------------------------------------------------------

    async def _aemit(self, event: AuditEvent | None) -> None:
        if event is not None:
            await aresolve(self.context.audit_sink.log(event))

    async def agenerate(self, config: ConfigLike | None = None) -> str:
        """
        Generate one identifier, awaiting asynchronous collaborators.

        Collaborators are awaited only where their answer is needed; the
        caller's cancellation and timeouts propagate unchanged.
        """
        cfg = as_config(config)
        plan = plan_identifier(cfg)
        security = cfg.security

        if security.rate_limit is not None:
            limit = security.rate_limit
            allowed = await aresolve(
                self.context.rate_limiter.check(limit.identifier, limit.max_requests, limit.window_ms)
            )
            if not allowed:
                await self._aemit(
                    self._generation_event(cfg, limit.identifier, False, reason="rate_limited")
                )
                raise RateLimitedError(limit.identifier, limit.max_requests, limit.window_ms)

        metadata = build_metadata(cfg, plan.metadata, self.context.counter)
        identifier = self._assemble(plan, metadata)
        attempts = 0

        if security.collision_detection:
            store = self.context.collision_store
            while not await _aclaim(store, identifier):
                if attempts >= MAX_COLLISION_RETRIES:
                    await self._aemit(
                        self._generation_event(cfg, identifier, False, reason="collision_exhausted")
                    )
                    raise GenerationExhaustedError(attempts)
                attempts += 1
                logger.debug("Collision on attempt %d, regenerating core", attempts)
                identifier = self._assemble(plan, metadata, self._retry_fragment(attempts))

        await self._aemit(self._generation_event(cfg, identifier, True, attempts=attempts))
        logger.debug("Generated identifier %s", hash_identifier(identifier))
        return identifier


def generate_id(config: ConfigLike | None = None, context: IdentifierContext | None = None) -> str:
    """
    Generate an identifier with the default (or given) context.

    Args:
        config: IdentifierConfig or a mapping validated into one
        context: Shared state; defaults to the process-wide context

    Returns:
        The identifier string

    Example:
        >>> len(generate_id({"length": 20, "checksum": True, "checksum_count": 2,
        ...                  "checksum_length": 2}))
        20
    """
    return IdentifierGenerator(context or get_default_context()).generate(config)


async def agenerate_id(
    config: ConfigLike | None = None, context: IdentifierContext | None = None
) -> str:
    """Async generate_id()."""
    return await IdentifierGenerator(context or get_default_context()).agenerate(config)
