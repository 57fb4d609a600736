from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from src.database import get_db
from src.schedules.exceptions import InvalidTripId, ScheduleStoreError, TripScheduleNotFound
from src.schedules.schemas import TripSchedule
from src.schedules.service import ScheduleResolver
from src.schedules.store import SqlAlchemyScheduleStore

router = APIRouter()

def get_schedule_resolver(db: Session = Depends(get_db)) -> ScheduleResolver:
    return ScheduleResolver(SqlAlchemyScheduleStore(db))

@router.get("/{trip_id}", response_model=TripSchedule)
def get_trip_schedule(
    trip_id: str,
    resolver: ScheduleResolver = Depends(get_schedule_resolver)
):
    """Get the current schedule of a trip with its ordered stops"""
    try:
        return resolver.resolve(trip_id)
    except InvalidTripId as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except TripScheduleNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trip schedule not found"
        )
    except ScheduleStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to load trip schedule: {str(e)}"
        )
