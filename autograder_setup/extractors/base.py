"""Base class for test extractors."""

from abc import ABC, abstractmethod
from typing import List

from ..models import DiscoveredTest


class TestExtractor(ABC):
    """Contract for extractors that find test functions in one source file."""

    __test__ = False

    name: str = ""

    @abstractmethod
    def extract(self, source: str) -> List[DiscoveredTest]:
        """Return the tests declared in ``source``, in source order."""
