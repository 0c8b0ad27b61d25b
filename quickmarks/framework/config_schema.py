"""Build-time export of module config fields to LibreOffice XCS/XCU.

Used by ``scripts/generate_manifest.py``. The runtime reads
``_manifest.py`` instead; the XCS/XCU pair only declares the registry
nodes that ``ConfigService`` reads and writes inside LibreOffice.
"""

import xml.etree.ElementTree as ET

PACKAGE_PREFIX = "org.quickmarks"

_NS = {
    "oor": "http://openoffice.org/2001/registry",
    "xs": "http://www.w3.org/2001/XMLSchema",
    "xsi": "http://www.w3.org/2001/XMLSchema-instance",
}

_XS_TYPES = {
    "boolean": "xs:boolean",
    "int": "xs:int",
    "float": "xs:double",
    "string": "xs:string",
}

for _prefix, _uri in _NS.items():
    ET.register_namespace(_prefix, _uri)


def _qn(ns, local):
    return f"{{{_NS[ns]}}}{local}"


def registry_names(module_name):
    """Return (safe_name, package) used for a module's registry node."""
    safe = module_name.replace(".", "_")
    return safe, f"{PACKAGE_PREFIX}.{safe}"


def format_default(schema):
    """Render a field default the way XCU expects it."""
    default = schema.get("default", "")
    if schema.get("type") == "boolean":
        return "true" if default else "false"
    return str(default)


def _serialize(root):
    ET.indent(root, space="  ")
    return ET.tostring(root, encoding="unicode", xml_declaration=True) + "\n"


def generate_xcs(module_name, config_fields):
    """Generate the XCS schema for a module's config fields."""
    safe, package = registry_names(module_name)
    root = ET.Element(_qn("oor", "component-schema"), {
        _qn("oor", "name"): safe,
        _qn("oor", "package"): package,
    })
    # oor:type values reference the xs prefix, ET would not declare it.
    root.set("xmlns:xs", _NS["xs"])

    group = ET.SubElement(ET.SubElement(root, "component"), "group",
                          {_qn("oor", "name"): safe})
    for field_name, schema in config_fields.items():
        prop = ET.SubElement(group, "prop", {
            _qn("oor", "name"): field_name,
            _qn("oor", "type"): _XS_TYPES.get(schema["type"], "xs:string"),
        })
        desc = ET.SubElement(ET.SubElement(prop, "info"), "desc")
        desc.text = schema.get("description") or schema.get("label", "")

    return _serialize(root)


def generate_xcu(module_name, config_fields):
    """Generate the XCU defaults for a module's config fields."""
    safe, package = registry_names(module_name)
    root = ET.Element(_qn("oor", "component-data"), {
        _qn("oor", "name"): safe,
        _qn("oor", "package"): package,
    })
    node = ET.SubElement(root, "node", {_qn("oor", "name"): safe})

    for field_name, schema in config_fields.items():
        prop = ET.SubElement(node, "prop", {_qn("oor", "name"): field_name})
        value = ET.SubElement(prop, "value", {
            _qn("xsi", "type"): _XS_TYPES.get(schema["type"], "xs:string"),
        })
        value.text = format_default(schema)

    return _serialize(root)
