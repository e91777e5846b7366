from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from app.core.config import get_settings

try:
    from supabase import create_client
except Exception:  # pragma: no cover - import error is handled by returning no integrations
    create_client = None  # type: ignore[assignment]


logger = logging.getLogger("dialogue-backend.integrations")


@dataclass(frozen=True)
class Integration:
    service_name: str
    status: str = "connected"

    @property
    def connected(self) -> bool:
        return self.status.strip().lower() == "connected"


def coerce_integrations(items: Iterable[object] | None) -> list[Integration]:
    result: list[Integration] = []
    for item in items or []:
        if isinstance(item, Integration):
            result.append(item)
        elif isinstance(item, dict):
            name = str(item.get("service_name") or item.get("serviceName") or "").strip().lower()
            if name:
                result.append(Integration(service_name=name, status=str(item.get("status") or "connected")))
        elif isinstance(item, str) and item.strip():
            result.append(Integration(service_name=item.strip().lower()))
    return result


def connected_service_names(items: Iterable[object] | None) -> set[str]:
    return {item.service_name for item in coerce_integrations(items) if item.connected}


def load_user_integrations(user_id: str) -> list[Integration]:
    settings = get_settings()
    if create_client is None or not settings.supabase_url or not settings.supabase_service_role_key:
        return []
    try:
        client = create_client(settings.supabase_url, settings.supabase_service_role_key)
        rows = (
            client.table(settings.integrations_table)
            .select("service_name,status")
            .eq("user_id", user_id)
            .execute()
            .data
            or []
        )
    except Exception as exc:
        logger.warning("integrations_load_failed user_id=%s err=%s", user_id, exc)
        return []
    return coerce_integrations(rows)
