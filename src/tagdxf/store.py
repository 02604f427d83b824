from __future__ import annotations

import logging
from typing import Iterable, Iterator

from .config import DEFAULT_CONFIG, CodecConfig
from .entities import get_schema
from .entity import Entity
from .errors import DanglingSuccessor

logger = logging.getLogger(__name__)


def new_entity(dxftype: str, config: CodecConfig = DEFAULT_CONFIG) -> Entity:
    schema = get_schema(dxftype)
    dxf = {
        slot.name: slot.initial_value(config)
        for slot in schema.slots()
        if not slot.kind.repeatable
    }
    return Entity(dxftype=schema.name, dxf=dxf)


def append(tail: Entity | None, entity: Entity) -> Entity:
    """Link ``entity`` after ``tail`` and return the new tail."""
    if tail is None:
        return entity
    if tail.next is not None:
        raise ValueError(f"cannot append after a {tail.dxftype} that is not the last node")
    tail.next = entity
    return entity


def last(head: Entity | None) -> Entity | None:
    node = head
    if node is None:
        return None
    while node.next is not None:
        node = node.next
    return node


def iter_list(head: Entity | None) -> Iterator[Entity]:
    node = head
    while node is not None:
        yield node
        node = node.next


def free_one(entity: Entity) -> None:
    if entity.next is not None:
        raise DanglingSuccessor(
            f"{entity.dxftype} with id-code {entity.handle:X} still links to a "
            f"{entity.next.dxftype}; detach it or use free_list",
            dxftype=entity.dxftype,
        )
    _release(entity)


def free_list(head: Entity | None) -> int:
    if head is None:
        logger.warning("free_list called with an empty list, nothing to free")
        return 0
    freed = 0
    node: Entity | None = head
    while node is not None:
        successor = node.next
        node.next = None
        _release(node)
        freed += 1
        node = successor
    return freed


def _release(entity: Entity) -> None:
    entity.dxf.clear()
    entity.binary_graphics_data.clear()
    entity.object_ids.clear()


class EntityStore:
    def __init__(self, entities: Iterable[Entity] = ()) -> None:
        self._by_type: dict[str, list[Entity]] = {}
        self._order: list[Entity] = []
        for entity in entities:
            self.append(entity)

    def append(self, entity: Entity) -> Entity:
        if entity.next is not None:
            raise ValueError(f"{entity.dxftype} already belongs to another list")
        items = self._by_type.setdefault(entity.dxftype, [])
        append(items[-1] if items else None, entity)
        items.append(entity)
        self._order.append(entity)
        return entity

    def head(self, dxftype: str) -> Entity | None:
        items = self._by_type.get(dxftype)
        return items[0] if items else None

    def last(self, dxftype: str) -> Entity | None:
        items = self._by_type.get(dxftype)
        return items[-1] if items else None

    def types(self) -> list[str]:
        return list(self._by_type)

    def count(self, dxftype: str) -> int:
        return len(self._by_type.get(dxftype, ()))

    def query(self, types: Iterable[str] | None = None) -> Iterator[Entity]:
        if types is None:
            yield from self._order
            return
        wanted = set(types)
        for entity in self._order:
            if entity.dxftype in wanted:
                yield entity

    def clear(self) -> int:
        freed = 0
        for items in self._by_type.values():
            freed += free_list(items[0])
        self._by_type.clear()
        self._order.clear()
        return freed

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)
