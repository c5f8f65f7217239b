"""
In-memory key-value store for CitySense.

Process-local KVStorePort implementation for embedding and tests.
"""

from typing import Dict, Optional


class MemoryKVStore:
    """메모리 기반 키-값 저장소"""

    def __init__(self):
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)
