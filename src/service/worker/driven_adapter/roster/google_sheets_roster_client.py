"""
Roster sheet client over the Google Sheets v4 REST API.

One row per signup on the roster tab; column M holds the signup id and is
the lookup key, so upserting the same signup twice rewrites one row.
"""

import re
from typing import Any

import httpx

from src.platform.exception.exceptions import PermanentJobError
from src.platform.logging.loguru_io import Logger
from src.service.signup.domain.entity.signup_entity import SignupDetail
from src.service.signup.domain.entity.slot_entity import Event
from src.service.worker.app.interface.i_roster_sync_client import IRosterSyncClient


ROSTER_HEADERS = [
    'Date',
    'Day',
    'Shift',
    'Seva',
    'Capacity',
    'Filled',
    'Name',
    'Email',
    'Phone',
    'Notes',
    'Status',
    'Timestamp',
    'SignupId',
]
DISABLED_REF = 'disabled'

_ROW_FROM_RANGE = re.compile(r'![A-Z]+(\d+)')


def build_roster_row(detail: SignupDetail) -> list[Any]:
    signup, slot, day = detail.signup, detail.slot, detail.day
    timestamp = signup.cancelled_at if signup.is_cancelled else signup.created_at
    return [
        day.date.isoformat(),
        day.date.strftime('%A'),
        slot.label or detail.event.shift_label,
        detail.seva_type.name,
        slot.capacity,
        slot.filled_count,
        signup.name,
        signup.email,
        signup.phone or '',
        signup.notes or '',
        signup.status.value,
        timestamp.isoformat() if timestamp else '',
        str(signup.id),
    ]


class GoogleSheetsRosterClient(IRosterSyncClient):
    def __init__(
        self,
        *,
        base_url: str,
        access_token: str,
        tab: str = 'Roster',
        default_spreadsheet_id: str = '',
        timeout_seconds: float = 10.0,
        disabled: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip('/')
        self.tab = tab
        self.default_spreadsheet_id = default_spreadsheet_id
        self.disabled = disabled
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={'Authorization': f'Bearer {access_token}'},
            timeout=timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        response = await self._client.request(method, url, **kwargs)
        if response.status_code in (400, 403, 404):
            # Bad range, missing sheet or revoked access will not fix itself
            raise PermanentJobError(
                f'Sheets API {method} {url} -> {response.status_code}: {response.text[:200]}'
            )
        response.raise_for_status()
        return response.json() if response.content else {}

    async def _write_header(self, spreadsheet_id: str) -> None:
        await self._request(
            'PUT',
            f'/{spreadsheet_id}/values/{self.tab}!A1:M1',
            params={'valueInputOption': 'RAW'},
            json={'values': [ROSTER_HEADERS]},
        )

    @Logger.io
    async def ensure_spreadsheet(self, *, event: Event) -> tuple[str, bool]:
        if self.disabled:
            return DISABLED_REF, False
        if event.roster_spreadsheet_id:
            return event.roster_spreadsheet_id, False
        if self.default_spreadsheet_id:
            return self.default_spreadsheet_id, False

        created = await self._request(
            'POST',
            self.base_url,  # absolute, httpx would append a slash to an empty path
            json={
                'properties': {'title': f'{event.name} Roster'},
                'sheets': [{'properties': {'title': self.tab}}],
            },
        )
        spreadsheet_id = created['spreadsheetId']
        await self._write_header(spreadsheet_id)
        return spreadsheet_id, True

    async def _find_row(self, spreadsheet_id: str, signup_id: str) -> int | None:
        data = await self._request('GET', f'/{spreadsheet_id}/values/{self.tab}!M:M')
        values = data.get('values', [])
        if not values:
            await self._write_header(spreadsheet_id)
            return None
        for index, cells in enumerate(values, start=1):
            if cells and cells[0] == signup_id:
                return index
        return None

    @Logger.io
    async def upsert(self, *, spreadsheet_id: str, detail: SignupDetail) -> str:
        if self.disabled:
            return DISABLED_REF

        row_values = build_roster_row(detail)
        row = await self._find_row(spreadsheet_id, str(detail.signup.id))
        if row is not None:
            row_range = f'{self.tab}!A{row}:M{row}'
            await self._request(
                'PUT',
                f'/{spreadsheet_id}/values/{row_range}',
                params={'valueInputOption': 'RAW'},
                json={'values': [row_values]},
            )
            return row_range

        appended = await self._request(
            'POST',
            f'/{spreadsheet_id}/values/{self.tab}!A:M:append',
            params={'valueInputOption': 'RAW', 'insertDataOption': 'INSERT_ROWS'},
            json={'values': [row_values]},
        )
        updated_range = appended.get('updates', {}).get('updatedRange', '')
        match = _ROW_FROM_RANGE.search(updated_range)
        if match:
            row = int(match.group(1))
            return f'{self.tab}!A{row}:M{row}'
        return updated_range or f'{self.tab}!{detail.signup.id}'

    @Logger.io
    async def mark_cancelled(self, *, spreadsheet_id: str, detail: SignupDetail) -> None:
        if self.disabled:
            return

        row = await self._find_row(spreadsheet_id, str(detail.signup.id))
        if row is None:
            # Upsert never landed; write the full (cancelled) row instead
            await self.upsert(spreadsheet_id=spreadsheet_id, detail=detail)
            return

        await self._request(
            'POST',
            f'/{spreadsheet_id}/values:batchUpdate',
            json={
                'valueInputOption': 'RAW',
                'data': [
                    {'range': f'{self.tab}!F{row}', 'values': [[detail.slot.filled_count]]},
                    {'range': f'{self.tab}!K{row}', 'values': [[detail.signup.status.value]]},
                ],
            },
        )
