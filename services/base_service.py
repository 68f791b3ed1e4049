"""
Base Service Interface

Defines the abstract interface for flight data sources.
The Schiphol API client and test fakes implement this interface.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, Generic, TypeVar
from datetime import date
from dataclasses import dataclass


T = TypeVar('T')


@dataclass
class ServiceResult(Generic[T]):
    """Standard service response wrapper"""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, data: T, metadata: Dict[str, Any] = None) -> 'ServiceResult[T]':
        """Create successful result"""
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: str, metadata: Dict[str, Any] = None) -> 'ServiceResult[T]':
        """Create failure result"""
        return cls(success=False, error=error, metadata=metadata)


class IFlightDataSource(ABC):
    """
    Abstract interface for raw flight data sources

    Implemented by:
    - SchipholService: Fetches departures from the Schiphol public-flights API
    """

    @abstractmethod
    def get_flights(
        self,
        schedule_date: Optional[date] = None,
        airline: Optional[str] = None,
        direction: Optional[str] = None
    ) -> ServiceResult[List[Dict[str, Any]]]:
        """
        Get raw flight records

        Args:
            schedule_date: Local schedule date (default: today in Amsterdam)
            airline: Airline code filter passed upstream
            direction: 'D' or 'A'

        Returns:
            ServiceResult containing a list of raw flight dictionaries
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the source is configured"""
        pass

    @abstractmethod
    def test_connection(self) -> ServiceResult[Dict[str, Any]]:
        """Test connection to the data source"""
        pass
