"""
Flask-Fieldset Configuration

Process-wide rendering defaults and ready-made template presets. Any key
can be overridden per fieldset with ``Fieldset.set_config`` or per app
with a ``FORM_<KEY>`` entry in the Flask config.
"""

import copy
from collections.abc import Mapping
from typing import Any, Dict


FIELD_TEMPLATE = (
    "\t\t<tr>\n"
    "\t\t\t<td>{label}{required}</td>\n"
    "\t\t\t<td>{field} {description}</td>\n"
    "\t\t</tr>\n"
)

MULTI_FIELD_TEMPLATE = (
    "\t\t<tr>\n"
    "\t\t\t<td>{group_label}{required}</td>\n"
    "\t\t\t<td>{fields}\n"
    "\t\t\t\t{field} {label}<br />\n"
    "{fields}\t\t\t{description}\n"
    "\t\t\t</td>\n"
    "\t\t</tr>\n"
)

FORM_TEMPLATE = "\n\t\t{open}\n\t\t<table>\n{fields}\n\t\t</table>\n\t\t{close}\n"

FIELDSET_TEMPLATE = (
    '\n\t\t<tr><td colspan="2">{open}<table>\n{fields}</table>{close}</td></tr>\n'
)

DEFAULT_CONFIG: Dict[str, Any] = {
    "form": {
        "prep_value": True,
        "auto_id": False,
        "auto_id_prefix": "form_",
        "form_method": "post",
        "form_attributes": {},
        "required_mark": "*",
        "label_class": None,
        "group_label": "<span>{label}</span>",
        "field_template": FIELD_TEMPLATE,
        "multi_field_template": MULTI_FIELD_TEMPLATE,
        "form_template": FORM_TEMPLATE,
        "fieldset_template": FIELDSET_TEMPLATE,
    }
}


TEMPLATE_PRESETS: Dict[str, Dict[str, Any]] = {
    "table": {
        "field_template": FIELD_TEMPLATE,
        "multi_field_template": MULTI_FIELD_TEMPLATE,
        "form_template": FORM_TEMPLATE,
        "fieldset_template": FIELDSET_TEMPLATE,
    },
    "div": {
        "field_template": (
            '<div class="form-field" id="{field_id}">{label}{required} {field}'
            ' <span class="description">{description}</span></div>\n'
        ),
        "multi_field_template": (
            '<div class="form-field">{group_label}{required}'
            "{fields}<span>{field} {label}</span>{fields}"
            '<span class="description">{description}</span></div>\n'
        ),
        "form_template": "\n{open}\n{fields}\n{close}\n",
        "fieldset_template": "{open}\n{fields}{close}\n",
    },
    "bootstrap": {
        "label_class": "form-label",
        "group_label": '<span class="form-label">{label}</span>',
        "field_template": (
            '<div class="mb-3" id="{field_id}">{label}{required} {field}'
            '<div class="form-text">{description}</div></div>\n'
        ),
        "multi_field_template": (
            '<div class="mb-3">{group_label}{required}'
            '{fields}<div class="form-check">{field} {label}</div>{fields}'
            '<div class="form-text">{description}</div></div>\n'
        ),
        "form_template": "\n{open}\n{fields}\n{close}\n",
        "fieldset_template": "{open}\n{fields}{close}\n",
    },
}


def get_template_preset(preset_name: str = "table") -> Dict[str, Any]:
    """
    Get a template preset by name

    Args:
        preset_name: Name of the preset

    Returns:
        A copy of the preset, ready for ``Fieldset.set_config``
    """
    if preset_name not in TEMPLATE_PRESETS:
        raise ValueError(
            f"Unknown preset '{preset_name}'. "
            f"Available presets: {list(TEMPLATE_PRESETS.keys())}"
        )
    return copy.deepcopy(TEMPLATE_PRESETS[preset_name])


def get_dotted(mapping: Mapping, key: str, default: Any = None) -> Any:
    """
    Look up ``key`` in ``mapping``, first as a flat key, then as a dotted
    path into nested mappings.
    """
    if key in mapping:
        return mapping[key]
    node = mapping
    for part in key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return default
        node = node[part]
    return node
