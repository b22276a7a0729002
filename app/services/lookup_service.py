"""
app/services/lookup_service.py

Purpose: Phone number lookup API integration

- One GET per lookup with a bounded timeout
- Network errors, timeouts, bad status codes and empty or malformed
  result sets all surface as ExternalServiceError
"""

import httpx
from typing import List, Optional

from pydantic import BaseModel, ValidationError, validator

from app.core.exceptions import ExternalServiceError
from app.core.logging import get_logger

logger = get_logger(__name__)


class LookupRecord(BaseModel):
    """One result entry; every field is optional."""
    name: Optional[str] = None
    fname: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None
    circle: Optional[str] = None
    
    @validator("*", pre=True)
    def stringify(cls, v):
        if v is None or isinstance(v, str):
            return v
        return str(v)


class LookupClient:
    """
    Client for the number lookup API.
    """
    
    def __init__(
        self,
        url: str,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.url = url
        self.timeout = timeout
        self._client = client or httpx.AsyncClient()
    
    async def close(self):
        await self._client.aclose()
    
    async def lookup(self, number: str) -> List[LookupRecord]:
        """
        Looks up a phone number.
        
        Args:
            number: Normalized query (10 or more digits)
        
        Returns:
            Non-empty list of records in the order returned by the API
        
        Raises:
            ExternalServiceError: on any failure, including "no data"
        """
        try:
            response = await self._client.get(
                self.url,
                params={"number": number},
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Lookup timed out after {self.timeout}s")
            raise ExternalServiceError("Lookup timed out") from e
        except httpx.HTTPError as e:
            # httpx error text embeds the request URL, which carries the number
            logger.warning(f"Lookup request failed: {type(e).__name__}")
            raise ExternalServiceError("Lookup request failed", details=type(e).__name__) from e
        except ValueError as e:
            logger.warning(f"Lookup returned invalid JSON: {e}")
            raise ExternalServiceError("Lookup returned invalid JSON") from e
        
        if not isinstance(data, list) or not data:
            logger.info("Lookup returned no records")
            raise ExternalServiceError("No data found")
        
        try:
            records = [LookupRecord.model_validate(item) for item in data]
        except ValidationError as e:
            logger.warning(f"Lookup returned malformed records: {e}")
            raise ExternalServiceError("Lookup returned malformed records") from e
        
        logger.info(f"Lookup returned {len(records)} record(s)")
        return records
