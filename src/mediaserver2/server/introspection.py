"""Introspection documents for container and item objects."""

from ..core.schema import (
    CONTAINER_PROPERTIES,
    ITEM_PROPERTIES,
    MEDIA_CONTAINER_IFACE,
    MEDIA_ITEM_IFACE,
    MEDIA_OBJECT_IFACE,
    OBJECT_PROPERTIES,
)

INTROSPECTION_OPEN = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    "<node>"
    "  <!-- http://live.gnome.org/Rygel/MediaServer2Spec -->"
)

INTROSPECTION_CLOSE = "</node>"

_LIST_ARGS = (
    '      <arg name="offset"  direction="in"  type="u"/>'
    '      <arg name="max"     direction="in"  type="u"/>'
    '      <arg name="filter"  direction="in"  type="as"/>'
    '      <arg name="objects" direction="out" type="a(a{sv})"/>'
)

INTROSPECTABLE_IFACE = (
    '  <interface name="org.freedesktop.DBus.Introspectable">'
    '    <method name="Introspect">'
    '      <arg name="xml_data" direction="out" type="s"/>'
    "    </method>"
    "  </interface>"
)

PROPERTIES_IFACE = (
    '  <interface name="org.freedesktop.DBus.Properties">'
    '    <method name="Get">'
    '      <arg name="interface" direction="in"  type="s"/>'
    '      <arg name="property"  direction="in"  type="s"/>'
    '      <arg name="value"     direction="out" type="v"/>'
    "    </method>"
    '    <method name="GetAll">'
    '      <arg name="interface"  direction="in"  type="s"/>'
    '      <arg name="properties" direction="out" type="a{sv}"/>'
    "    </method>"
    "  </interface>"
)


def _properties_xml(properties) -> str:
    return "".join(
        f'    <property name="{prop.value}" type="{prop.wire_type.value}" access="read"/>'
        for prop in properties
    )


MEDIAOBJECT2_IFACE = (
    f'  <interface name="{MEDIA_OBJECT_IFACE}">'
    + _properties_xml(OBJECT_PROPERTIES)
    + "  </interface>"
)

MEDIAITEM2_IFACE = (
    f'  <interface name="{MEDIA_ITEM_IFACE}">'
    + _properties_xml(ITEM_PROPERTIES)
    + "  </interface>"
)

MEDIACONTAINER2_IFACE = (
    f'  <interface name="{MEDIA_CONTAINER_IFACE}">'
    + _properties_xml(CONTAINER_PROPERTIES)
    + '    <method name="ListChildren">' + _LIST_ARGS + "    </method>"
    + '    <method name="ListContainers">' + _LIST_ARGS + "    </method>"
    + '    <method name="ListItems">' + _LIST_ARGS + "    </method>"
    + '    <method name="SearchObjects">'
    + '      <arg name="query"   direction="in"  type="s"/>'
    + _LIST_ARGS
    + "    </method>"
    + '   <signal name="Updated"/>'
    + "  </interface>"
)

CONTAINER_INTROSPECTION = (
    INTROSPECTION_OPEN
    + MEDIAOBJECT2_IFACE
    + MEDIACONTAINER2_IFACE
    + INTROSPECTABLE_IFACE
    + PROPERTIES_IFACE
    + INTROSPECTION_CLOSE
)

ITEM_INTROSPECTION = (
    INTROSPECTION_OPEN
    + MEDIAOBJECT2_IFACE
    + MEDIAITEM2_IFACE
    + INTROSPECTABLE_IFACE
    + PROPERTIES_IFACE
    + INTROSPECTION_CLOSE
)
