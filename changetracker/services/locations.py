"""
Location lookups and consistency checks.

Rows such as records and outlooks carry state_id, lga_id and sometimes
ward_id side by side. Authorization trusts those columns, so they must
describe one path down the State -> LGA -> Ward tree before anything is
written.

Usage:
    service = LocationService(db)
    lga, ward = await service.resolve(state_id=5, lga_id=9, ward_id=42)
"""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from changetracker.core.exceptions import LocationMismatchError, UnknownLocationError
from changetracker.core.permissions import LocationKind
from changetracker.models.location import State, Lga, Ward


class LocationService:
    """Read-only access to the location tree."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve(
        self,
        state_id: int,
        lga_id: int,
        ward_id: int | None = None,
    ) -> tuple[Lga, Ward | None]:
        """
        Load the LGA (and ward) and check they sit under the given State.

        Raises:
            UnknownLocationError: If the LGA or ward does not exist
            LocationMismatchError: If the LGA is not in the State, or the
                ward is not in the LGA
        """
        lga = await self.db.get(Lga, lga_id)
        if lga is None:
            raise UnknownLocationError(LocationKind.LGA.value, lga_id)
        if lga.state_id != state_id:
            raise LocationMismatchError(
                LocationKind.LGA.value, lga_id, LocationKind.STATE.value, state_id
            )

        if ward_id is None:
            return lga, None

        ward = await self.db.get(Ward, ward_id)
        if ward is None:
            raise UnknownLocationError(LocationKind.WARD.value, ward_id)
        if ward.lga_id != lga_id:
            raise LocationMismatchError(
                LocationKind.WARD.value, ward_id, LocationKind.LGA.value, lga_id
            )
        return lga, ward

    async def lgas_in_state(self, state_id: int) -> list[Lga]:
        """
        LGAs of one State, by name.

        Raises:
            UnknownLocationError: If the State does not exist
        """
        if await self.db.get(State, state_id) is None:
            raise UnknownLocationError(LocationKind.STATE.value, state_id)

        result = await self.db.execute(
            select(Lga).where(Lga.state_id == state_id).order_by(Lga.name)
        )
        return list(result.scalars().all())

    async def search_wards(
        self,
        lga_ids: Sequence[int] | None = None,
        search: str | None = None,
        limit: int = 200,
    ) -> list[Ward]:
        """Wards for pickers, optionally narrowed to LGAs and a name fragment."""
        query = select(Ward).order_by(Ward.name).limit(limit)
        if lga_ids:
            query = query.where(Ward.lga_id.in_(list(lga_ids)))
        if search:
            query = query.where(Ward.name.ilike(f"%{search}%"))

        result = await self.db.execute(query)
        return list(result.scalars().all())
