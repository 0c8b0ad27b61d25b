#!/usr/bin/env python3
"""Generate _manifest.py, XCS/XCU and Accelerators.xcu from module.yaml files.

Reads each module.yaml under quickmarks/modules/ and produces:
  - quickmarks/_manifest.py               — Python dict for runtime
  - build/generated/registry/*.xcs|*.xcu  — LO config schemas and defaults
  - build/generated/Accelerators.xcu      — keyboard shortcuts

Usage:
    python3 scripts/generate_manifest.py
    python3 scripts/generate_manifest.py --modules core bookmarks
"""

import argparse
import json
import os
import sys
import xml.etree.ElementTree as ET

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

import yaml  # noqa: E402

from quickmarks.main import IMPLEMENTATION_NAME, _topo_sort  # noqa: E402

# Short context names -> LO document service names
CONTEXT_MAP = {
    "writer": "com.sun.star.text.TextDocument",
    "web": "com.sun.star.text.WebDocument",
    "global": "com.sun.star.text.GlobalDocument",
}

# Commands reach MainJob.trigger() with everything after the "?".
COMMAND_PREFIX = "service:%s?" % IMPLEMENTATION_NAME

_OOR = "http://openoffice.org/2001/registry"
ET.register_namespace("oor", _OOR)


def _oor(local):
    return "{%s}%s" % (_OOR, local)


def find_modules(modules_dir, filter_names=None):
    """Parse every module.yaml under *modules_dir*.

    Module name comes from the ``name`` field, falling back to the
    directory path with separators turned into dots.
    """
    manifests = []
    for dirpath, _dirnames, filenames in os.walk(modules_dir):
        if "module.yaml" not in filenames:
            continue
        module_name = os.path.relpath(dirpath, modules_dir).replace(os.sep, ".")
        if filter_names and module_name.split(".")[0] not in filter_names:
            continue
        with open(os.path.join(dirpath, "module.yaml"), encoding="utf-8") as f:
            manifest = yaml.safe_load(f) or {}
        manifest.setdefault("name", module_name)
        manifests.append(manifest)
    return manifests


def command_url(module_name, action):
    return "%s%s.%s" % (COMMAND_PREFIX, module_name, action)


def manifest_entry(module):
    """Runtime-relevant subset of a module.yaml."""
    return {
        "name": module["name"],
        "description": module.get("description", ""),
        "requires": module.get("requires", []),
        "provides_services": module.get("provides_services", []),
        "config": module.get("config", {}),
        "actions": list((module.get("actions") or {}).keys()),
    }


def _json_to_python(text):
    """Turn the JSON keywords of json.dumps output into Python literals.

    Only whole words outside string literals are replaced.
    """
    out = []
    in_string = escape = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_string:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            i += 1
            continue
        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
            continue
        for jval, pyval in (("true", "True"), ("false", "False"), ("null", "None")):
            end = i + len(jval)
            if (text.startswith(jval, i)
                    and (i == 0 or not text[i - 1].isalnum())
                    and (end >= len(text) or not text[end].isalnum())):
                out.append(pyval)
                i = end
                break
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def render_manifest_py(modules):
    from quickmarks.version import EXTENSION_VERSION

    lines = [
        '"""Auto-generated module manifest. DO NOT EDIT."""',
        "",
        "VERSION = %r" % EXTENSION_VERSION,
        "",
        "MODULES = [",
    ]
    for m in modules:
        lines.append("    %s," % _json_to_python(json.dumps(manifest_entry(m), indent=8)))
    lines.append("]")
    lines.append("")
    return "\n".join(lines)


def render_accelerators_xcu(modules):
    """Build Accelerators.xcu from the ``shortcuts`` of each module.

    Format in module.yaml::

        shortcuts:
          toggle_1:
            key: 1_SHIFT_MOD1
            context: [writer]
    """
    by_context = {}  # LO service name -> [(key, url)]
    for m in modules:
        for action, shortcut in (m.get("shortcuts") or {}).items():
            key = shortcut.get("key")
            if not key:
                continue
            url = command_url(m["name"], action)
            for ctx_name in shortcut.get("context") or CONTEXT_MAP:
                lo_svc = CONTEXT_MAP.get(ctx_name, ctx_name)
                by_context.setdefault(lo_svc, []).append((key, url))

    root = ET.Element(_oor("component-data"), {
        _oor("name"): "Accelerators",
        _oor("package"): "org.openoffice.Office",
    })
    modules_node = ET.SubElement(
        ET.SubElement(root, "node", {_oor("name"): "PrimaryKeys"}),
        "node", {_oor("name"): "Modules"})
    for lo_svc, shortcuts in sorted(by_context.items()):
        svc_node = ET.SubElement(modules_node, "node", {_oor("name"): lo_svc})
        for key, url in shortcuts:
            key_node = ET.SubElement(svc_node, "node", {
                _oor("name"): key,
                _oor("op"): "replace",
            })
            value = ET.SubElement(
                ET.SubElement(key_node, "prop", {_oor("name"): "Command"}),
                "value")
            value.set("xml:lang", "en-US")
            value.text = url

    ET.indent(root, space="  ")
    return ET.tostring(root, encoding="unicode", xml_declaration=True) + "\n"


def _write(path, content):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    print("  Generated %s" % path)


def write_registry(modules, output_dir):
    from quickmarks.framework.config_schema import (
        generate_xcs, generate_xcu, registry_names)

    for m in modules:
        config = m.get("config")
        if not config:
            continue
        safe, _ = registry_names(m["name"])
        _write(os.path.join(output_dir, "%s.xcs" % safe), generate_xcs(m["name"], config))
        _write(os.path.join(output_dir, "%s.xcu" % safe), generate_xcu(m["name"], config))


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Generate _manifest.py, XCS/XCU and Accelerators.xcu")
    parser.add_argument(
        "--modules", nargs="*", default=None,
        help="Only process these modules (default: all)")
    args = parser.parse_args(argv)

    modules_dir = os.path.join(PROJECT_ROOT, "quickmarks", "modules")
    if not os.path.isdir(modules_dir):
        print("ERROR: quickmarks/modules/ not found at %s" % modules_dir,
              file=sys.stderr)
        return 1

    modules = _topo_sort(find_modules(modules_dir, args.modules))
    if not modules:
        print("  No modules found!")
        return 1
    print("  Module order: %s" % " -> ".join(m["name"] for m in modules))

    build_dir = os.path.join(PROJECT_ROOT, "build", "generated")
    _write(os.path.join(PROJECT_ROOT, "quickmarks", "_manifest.py"),
           render_manifest_py(modules))
    write_registry(modules, os.path.join(build_dir, "registry"))
    _write(os.path.join(build_dir, "Accelerators.xcu"),
           render_accelerators_xcu(modules))

    print("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
