"""Auto-generated module manifest. DO NOT EDIT."""

VERSION = '0.3.0'

MODULES = [
    {
        "name": "core",
        "description": "Core services (config, events, document)",
        "requires": [],
        "provides_services": [
                "config",
                "events",
                "document"
        ],
        "config": {
                "log_level": {
                        "type": "string",
                        "default": "WARN",
                        "widget": "select",
                        "label": "Log Level",
                        "public": True,
                        "options": [
                                {
                                        "value": "DEBUG",
                                        "label": "Debug"
                                },
                                {
                                        "value": "INFO",
                                        "label": "Info"
                                },
                                {
                                        "value": "WARN",
                                        "label": "Warning"
                                },
                                {
                                        "value": "ERROR",
                                        "label": "Error"
                                }
                        ]
                }
        },
        "actions": []
},
    {
        "name": "bookmarks",
        "description": "Nine numbered bookmarks across open documents",
        "requires": [
                "config",
                "events",
                "document"
        ],
        "provides_services": [
                "bookmarks"
        ],
        "config": {
                "track_edits": {
                        "type": "boolean",
                        "default": False,
                        "widget": "checkbox",
                        "label": "Move bookmarks when lines are inserted or removed above them"
                },
                "highlight_color": {
                        "type": "string",
                        "default": "rgba(255, 204, 203, 0.5)",
                        "widget": "text",
                        "label": "Line highlight color"
                },
                "border": {
                        "type": "string",
                        "default": "1px solid rgba(178, 34, 34, 1)",
                        "widget": "text",
                        "label": "Line highlight border"
                },
                "label_color": {
                        "type": "string",
                        "default": "rgba(178, 34, 34, 1)",
                        "widget": "text",
                        "label": "Slot label color"
                },
                "label_format": {
                        "type": "string",
                        "default": "[{slot}]",
                        "widget": "text",
                        "label": "Slot label text"
                },
                "hover_format": {
                        "type": "string",
                        "default": "Bookmark {slot}",
                        "widget": "text",
                        "label": "Hover text"
                },
                "notice_timeout": {
                        "type": "int",
                        "default": 4,
                        "widget": "number",
                        "label": "Seconds before a notice disappears",
                        "min": 0,
                        "max": 60
                }
        },
        "actions": [
                "toggle_1",
                "toggle_2",
                "toggle_3",
                "toggle_4",
                "toggle_5",
                "toggle_6",
                "toggle_7",
                "toggle_8",
                "toggle_9",
                "goto_1",
                "goto_2",
                "goto_3",
                "goto_4",
                "goto_5",
                "goto_6",
                "goto_7",
                "goto_8",
                "goto_9"
        ]
},
]
