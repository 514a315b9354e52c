"""
Company-scoped cache of known employee ids.

Only one company is cached at a time; asking for another company drops
the cached list. An empty cache never rejects an id, since the HR API
stays the authority.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from hrdash.services.cache import Cache

logger = logging.getLogger(__name__)

_KEY = "employee_ids"

EmployeeId = Union[int, str]


class EmployeeIdCache:
    def __init__(self, cache: Cache, ttl_seconds: Optional[float] = None):
        self._cache = cache
        self._ttl = ttl_seconds

    def set_employee_ids(self, employees: Iterable[Dict[str, Any]], company_id: EmployeeId) -> List[str]:
        ids = []
        for employee in employees or []:
            value = employee.get("EmployeeID", employee.get("employeeId", employee.get("employee_id")))
            if value is not None and value != "":
                ids.append(str(value))
        self._cache.set(_KEY, {"company_id": str(company_id), "ids": ids}, self._ttl)
        logger.debug("Cached %d employee ids for company %s", len(ids), company_id)
        return ids

    def get_employee_ids(self, company_id: EmployeeId) -> Optional[List[str]]:
        cached = self._cache.get(_KEY)
        if cached is None:
            return None
        if cached["company_id"] != str(company_id):
            self.clear()
            return None
        return list(cached["ids"])

    def is_valid_employee_id(self, employee_id: EmployeeId, company_id: EmployeeId) -> bool:
        ids = self.get_employee_ids(company_id)
        if ids is None:
            return True
        return str(employee_id) in ids

    def clear(self) -> None:
        self._cache.delete(_KEY)
