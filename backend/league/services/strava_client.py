import logging

import httpx

from league.core.config import Settings
from league.core.constants import ACTIVITIES_PER_PAGE
from league.core.errors import TimestampError, UpstreamAuthError, UpstreamError, UpstreamNotFoundError
from league.services.upstream import ActivityDetail, ActivityRef

log = logging.getLogger(__name__)


def _raise_for_status(r: httpx.Response, what: str) -> None:
    if r.status_code == 401:
        raise UpstreamAuthError(f"{what}: invalid or expired Strava token", 401)
    if r.status_code == 404:
        raise UpstreamNotFoundError(f"{what}: not found on Strava", 404)
    if r.status_code >= 400:
        raise UpstreamError(f"{what} failed ({r.status_code}): {r.text[:200]}", r.status_code)


def _parse(build, payload, what: str):
    """Build a value type from Strava JSON; malformed shapes become UpstreamError.

    TimestampError passes through so the activity is reported as having an
    invalid timestamp rather than a failed fetch.
    """
    try:
        return build(payload)
    except TimestampError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise UpstreamError(f"{what}: unexpected payload ({e.__class__.__name__}: {e})") from e


class StravaClient:
    """Thin async wrapper over the Strava v3 endpoints the league needs."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._client = client or httpx.AsyncClient(
            base_url=settings.strava_api_base,
            timeout=settings.upstream_timeout_seconds,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, token: str, params: dict, what: str):
        try:
            r = await self._client.get(
                path, params=params, headers={"Authorization": f"Bearer {token}"}
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f"{what}: {e.__class__.__name__}: {e}") from e
        _raise_for_status(r, what)
        try:
            return r.json()
        except ValueError as e:
            raise UpstreamError(f"{what}: response is not JSON ({r.text[:80]!r})", r.status_code) from e

    async def list_activities(self, token: str, start_epoch: int, end_epoch: int) -> list[ActivityRef]:
        """All activities with start in [start_epoch, end_epoch], every page."""
        # Strava's after/before are exclusive; widen by a second each side
        params = {"after": start_epoch - 1, "before": end_epoch + 1, "per_page": ACTIVITIES_PER_PAGE}
        refs: list[ActivityRef] = []
        page = 1
        while True:
            acts = await self._get(
                "/athlete/activities", token, {**params, "page": page}, "List activities"
            )
            if not acts:
                break
            if not isinstance(acts, list):
                raise UpstreamError("List activities: expected a JSON list")
            refs.extend(_parse(ActivityRef.from_summary, a, "List activities") for a in acts)
            if len(acts) < ACTIVITIES_PER_PAGE:
                break
            page += 1
        log.debug("Listed %d activities in [%d, %d]", len(refs), start_epoch, end_epoch)
        return refs

    async def get_activity_detail(self, ref: ActivityRef, token: str) -> ActivityDetail:
        payload = await self._get(
            f"/activities/{ref.external_id}",
            token,
            {"include_all_efforts": "true"},
            f"Fetch activity {ref.external_id}",
        )
        detail = _parse(ActivityDetail.from_payload, payload, f"Fetch activity {ref.external_id}")
        log.debug("Activity %s loaded: %d segment efforts", ref.external_id, len(detail.efforts))
        return detail

    async def refresh_access_token(self, refresh_token: str) -> dict:
        data = {
            "client_id": self.settings.strava_client_id,
            "client_secret": self.settings.strava_client_secret,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }
        try:
            r = await self._client.post(self.settings.strava_oauth_url, data=data)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Token refresh: {e}") from e
        if r.status_code in (400, 401):
            raise UpstreamAuthError(f"Token refresh rejected: {r.text[:200]}", r.status_code)
        _raise_for_status(r, "Token refresh")
        tok = r.json()
        if not tok.get("access_token"):
            raise UpstreamError("Token refresh: no access_token in response")
        return tok
