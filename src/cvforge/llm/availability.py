from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import requests

from cvforge.config import Settings
from cvforge.llm.catalog import AIModel, AIProvider, local_model_for_tag, models_for

logger = logging.getLogger(__name__)

_PROBE_TIMEOUT_SEC = 3


@dataclass(frozen=True, slots=True)
class ModelCache:
    models: list[AIModel] = field(default_factory=list)
    expires_at: datetime = datetime.min.replace(tzinfo=UTC)

    def is_fresh(self, now: datetime) -> bool:
        return now < self.expires_at


def cloud_models() -> list[AIModel]:
    return [
        model
        for provider in AIProvider
        if provider is not AIProvider.LOCAL
        for model in models_for(provider)
    ]


def _fetch_tags(settings: Settings) -> list[str] | None:
    try:
        response = requests.get(settings.local_tags_url, timeout=_PROBE_TIMEOUT_SEC)
    except requests.RequestException as exc:
        logger.debug("Local AI not available at %s: %s", settings.local_tags_url, exc)
        return None
    if not response.ok:
        return None

    try:
        payload = response.json()
    except ValueError:
        logger.warning("Local AI returned a non-JSON tag list")
        return []

    names = []
    for item in payload.get("models", []) if isinstance(payload, dict) else []:
        name = item.get("name") if isinstance(item, dict) else None
        if isinstance(name, str):
            names.append(name)
    return names


def is_local_available(settings: Settings) -> bool:
    if not settings.local_llm_enabled:
        return False
    return _fetch_tags(settings) is not None


def installed_local_models(settings: Settings) -> list[AIModel]:
    if not settings.local_llm_enabled:
        return []
    installed: list[AIModel] = []
    for tag in _fetch_tags(settings) or []:
        model = local_model_for_tag(tag)
        if model is not None and model not in installed:
            installed.append(model)
    return installed


def available_models(
    cache: ModelCache | None,
    settings: Settings,
    *,
    now: datetime | None = None,
) -> ModelCache:
    """Return ``cache`` while it is fresh, otherwise a newly probed one.

    The caller owns the cache value and is expected to keep whatever is returned.
    """
    now = now or datetime.now(UTC)
    if cache is not None and cache.is_fresh(now):
        return cache

    models = cloud_models() + installed_local_models(settings)
    return ModelCache(models=models, expires_at=now + timedelta(seconds=settings.model_cache_ttl_sec))
