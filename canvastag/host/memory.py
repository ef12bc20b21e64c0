"""In-memory canvas, used by tests and by code embedding the controller."""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .base import CanvasHost, CanvasObject, next_object_id


class InMemoryCanvas(CanvasHost):
    """Canvas whose objects, plugin data and selection live in plain dicts."""

    def __init__(self, objects: Optional[Iterable[CanvasObject]] = None):
        super().__init__()
        self._objects: Dict[str, CanvasObject] = {}
        self._data: Dict[Tuple[str, str], str] = {}
        self._selection: List[str] = []
        for obj in objects or ():
            self._objects[obj.id] = obj

    def add_object(
        self,
        name: str,
        host_type: str = "STICKY",
        object_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> CanvasObject:
        if object_id is None:
            object_id = next_object_id(self._objects)
        obj = CanvasObject(id=object_id, name=name, host_type=host_type, description=description)
        self._objects[obj.id] = obj
        return obj

    def remove_object(self, object_id: str) -> bool:
        if self._objects.pop(object_id, None) is None:
            return False
        self._data = {k: v for k, v in self._data.items() if k[0] != object_id}
        if object_id in self._selection:
            self.set_selection([oid for oid in self._selection if oid != object_id])
        return True

    def iter_objects(self) -> Iterator[CanvasObject]:
        return iter(list(self._objects.values()))

    def get_object(self, object_id: str) -> Optional[CanvasObject]:
        return self._objects.get(object_id)

    def get_data(self, owner_id: str, key: str) -> str:
        return self._data.get((owner_id, key), "")

    def set_data(self, owner_id: str, key: str, value: str) -> None:
        self._data[(owner_id, key)] = value

    def get_selection(self) -> List[str]:
        return list(self._selection)

    def _store_selection(self, object_ids: List[str]) -> None:
        self._selection = list(object_ids)
