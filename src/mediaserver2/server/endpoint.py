"""Protocol endpoints: one per registered backend.

An endpoint receives remote requests addressed to one backend, calls the
bridge functions installed on it and marshals the results into the wire
shape: property values in filter order, listings as lists of such value
lists. It also raises change notifications on behalf of its backend.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Sequence

from ..core.bridge import MediaServerBridge
from ..core.listing import ListType
from ..core.properties import FieldFilter, PropertyMap, parse_filter
from ..core.schema import INTERFACE_PROPERTIES, ROOT_ID, Property
from ..events import EventBus, ObjectUpdated
from ..exceptions import BackendUnavailable, RegistrationError, UnknownProperty
from ..models.config import MAX_LIMIT
from ..models.media import MediaKind
from ..providers.hooks import HookContext, RegistryEvent
from ..providers.registry import ProviderRegistry, object_path, service_name
from .introspection import CONTAINER_INTROSPECTION, ITEM_INTROSPECTION

logger = logging.getLogger(__name__)

GetPropertiesFunc = Callable[[str, FieldFilter], Awaitable[PropertyMap]]
ListChildrenFunc = Callable[[str, ListType, int, int, FieldFilter], Awaitable[List[PropertyMap]]]
SearchObjectsFunc = Callable[[str, str, int, int, FieldFilter], Awaitable[List[PropertyMap]]]


def _values(properties: Sequence[Property], props: PropertyMap) -> List[Any]:
    return [props[prop] for prop in properties]


class Endpoint:
    """Remote face of one backend."""

    def __init__(self, name: str, bus: Optional[EventBus] = None) -> None:
        self.name = name
        self.bus = bus
        self._get_properties: Optional[GetPropertiesFunc] = None
        self._list_children: Optional[ListChildrenFunc] = None
        self._search_objects: Optional[SearchObjectsFunc] = None

    @property
    def service_name(self) -> str:
        return service_name(self.name)

    @property
    def object_path(self) -> str:
        return object_path(self.name)

    def set_get_properties_func(self, func: Optional[GetPropertiesFunc]) -> None:
        self._get_properties = func

    def set_list_children_func(self, func: Optional[ListChildrenFunc]) -> None:
        self._list_children = func

    def set_search_objects_func(self, func: Optional[SearchObjectsFunc]) -> None:
        self._search_objects = func

    @property
    def searchable(self) -> bool:
        return self._search_objects is not None

    async def get_properties(self, object_id: str, fields: FieldFilter) -> List[Any]:
        """Values of the requested properties, in filter order."""
        if self._get_properties is None:
            raise BackendUnavailable("Unable to get properties")
        properties = parse_filter(fields)
        props = await self._get_properties(object_id, properties)
        return _values(properties, props)

    async def list_children(self, object_id: str, offset: int, max_count: int,
                            fields: FieldFilter) -> List[List[Any]]:
        return await self._list(object_id, ListType.ALL, offset, max_count, fields)

    async def list_containers(self, object_id: str, offset: int, max_count: int,
                              fields: FieldFilter) -> List[List[Any]]:
        return await self._list(object_id, ListType.CONTAINERS, offset, max_count, fields)

    async def list_items(self, object_id: str, offset: int, max_count: int,
                         fields: FieldFilter) -> List[List[Any]]:
        return await self._list(object_id, ListType.ITEMS, offset, max_count, fields)

    async def _list(self, object_id: str, list_type: ListType, offset: int, max_count: int,
                    fields: FieldFilter) -> List[List[Any]]:
        if self._list_children is None:
            raise BackendUnavailable("Unable to get children")
        properties = parse_filter(fields)
        children = await self._list_children(object_id, list_type, offset, max_count, properties)
        return [_values(properties, child) for child in children]

    async def search_objects(self, object_id: str, query: str, offset: int, max_count: int,
                             fields: FieldFilter) -> List[List[Any]]:
        if self._search_objects is None:
            raise BackendUnavailable("Unable to search objects")
        properties = parse_filter(fields)
        objects = await self._search_objects(object_id, query, offset, max_count, properties)
        return [_values(properties, obj) for obj in objects]

    async def get(self, object_id: str, interface: str, name: str) -> Any:
        """Standard property interface: one property of one interface."""
        interface_properties = INTERFACE_PROPERTIES.get(interface)
        if interface_properties is None:
            raise UnknownProperty(interface)
        try:
            prop = Property.lookup(name)
        except KeyError:
            raise UnknownProperty(name) from None
        if prop not in interface_properties:
            raise UnknownProperty(name)
        values = await self.get_properties(object_id, [prop])
        return values[0]

    async def get_all(self, object_id: str, interface: str) -> Dict[str, Any]:
        """Standard property interface: every property of one interface."""
        interface_properties = INTERFACE_PROPERTIES.get(interface)
        if interface_properties is None:
            raise UnknownProperty(interface)
        values = await self.get_properties(object_id, interface_properties)
        return {prop.value: value for prop, value in zip(interface_properties, values)}

    async def introspect(self, object_id: str = ROOT_ID) -> str:
        if object_id == ROOT_ID:
            return CONTAINER_INTROSPECTION
        object_type = (await self.get_properties(object_id, [Property.TYPE]))[0]
        if object_type == MediaKind.CONTAINER.value:
            return CONTAINER_INTROSPECTION
        return ITEM_INTROSPECTION

    async def updated(self, object_id: str) -> None:
        """Emit the change notification for ``object_id``.

        Raise it when a child item is created or removed, a child item is
        modified, or the object's own properties change. When a child
        container changes, notify the child instead. Callers are expected
        to follow these rules.
        """
        logger.debug(f"{self.name}: {object_id} updated")
        if self.bus is not None:
            await self.bus.publish(ObjectUpdated(endpoint_name=self.name, object_id=object_id))


class EndpointTable:
    """Creates and destroys endpoints as the registry adds and removes backends."""

    def __init__(self, registry: ProviderRegistry, bus: Optional[EventBus] = None,
                 limit: int = MAX_LIMIT) -> None:
        self.registry = registry
        self.bus = bus
        self.limit = limit
        self._endpoints: Dict[str, Endpoint] = {}
        registry.hooks.register(RegistryEvent.PROVIDER_ADDED, self._on_provider_added)
        registry.hooks.register(RegistryEvent.PROVIDER_REMOVED, self._on_provider_removed)

    def __contains__(self, name: str) -> bool:
        return name in self._endpoints

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(list(self._endpoints.values()))

    def __len__(self) -> int:
        return len(self._endpoints)

    def get(self, name: str) -> Optional[Endpoint]:
        return self._endpoints.get(name)

    def _on_provider_added(self, context: HookContext) -> None:
        backend = context.data["backend"]
        name = context.data["endpoint_name"]
        if name in self._endpoints:
            raise RegistrationError(f"{service_name(name)} is already registered")

        bridge = MediaServerBridge(backend, self.limit)
        endpoint = Endpoint(name, self.bus)
        endpoint.set_get_properties_func(bridge.get_properties)
        endpoint.set_list_children_func(bridge.list_children)
        if backend.supports_search():
            endpoint.set_search_objects_func(bridge.search_objects)

        self._endpoints[name] = endpoint
        logger.debug(f"Endpoint {endpoint.object_path} created")

    def _on_provider_removed(self, context: HookContext) -> None:
        endpoint = self._endpoints.pop(context.data["endpoint_name"], None)
        if endpoint is not None:
            logger.debug(f"Endpoint {endpoint.object_path} destroyed")
