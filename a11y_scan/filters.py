"""Applicability filter and accessible-name resolution shared by the rules."""

from __future__ import annotations

from bs4 import Tag

from a11y_scan.dom import DocumentAccessor, iter_ancestors

HIDDEN_ROLES = {"presentation", "none"}
NATURALLY_FOCUSABLE = {"a", "button", "input", "select", "textarea"}
FORM_CONTROL_SELECTOR = (
    'input:not([type="hidden"]):not([type="submit"]):not([type="button"])'
    ':not([type="reset"]):not([type="image"]), textarea, select'
)


def is_applicable(document: DocumentAccessor, node: Tag) -> bool:
    """Return whether a node is in scope for rule evaluation.

    A node is out of scope when it or any ancestor below the document root
    is presentational or ``aria-hidden``, or when it is not rendered.
    """
    if _is_semantically_hidden(node):
        return False
    for ancestor in iter_ancestors(node, stop=document.root):
        if _is_semantically_hidden(ancestor):
            return False
    return is_visually_rendered(document, node)


def is_visually_rendered(document: DocumentAccessor, node: Tag) -> bool:
    if is_visually_hidden(document, node):
        return False
    return not document.bounding_box(node).is_empty()


def is_visually_hidden(document: DocumentAccessor, node: Tag) -> bool:
    """Style-only check: ``display:none``, ``visibility:hidden`` or zero opacity."""
    style = document.computed_style(node)
    return style.display == "none" or style.visibility == "hidden" or style.opacity == 0


def has_accessible_name(node: Tag) -> bool:
    """Return whether naming attributes already give the node a name.

    Checks ``aria-label``, then ``aria-labelledby``, then any ancestor below
    ``body`` carrying ``aria-labelledby``. Referenced elements are not
    validated.
    """
    if _attribute_text(node, "aria-label"):
        return True
    if _attribute_text(node, "aria-labelledby"):
        return True
    for ancestor in iter_ancestors(node):
        if ancestor.name == "body":
            break
        if _attribute_text(ancestor, "aria-labelledby"):
            return True
    return False


def accessible_name_text(document: DocumentAccessor, node: Tag) -> str:
    """Best-effort text of the node's ARIA name, or ``""``."""
    label = _attribute_text(node, "aria-label")
    if label:
        return label
    references = _attribute_text(node, "aria-labelledby")
    if not references:
        return ""
    parts: list[str] = []
    for reference in references.split():
        for candidate in document.query("[id]"):
            if candidate.get("id") == reference:
                parts.append(document.text(candidate).strip())
                break
    return " ".join(part for part in parts if part)


def find_label(document: DocumentAccessor, control: Tag) -> Tag | None:
    """Return the label for a control: ``label[for]`` first, then a wrapping label."""
    control_id = control.get("id")
    if isinstance(control_id, str) and control_id:
        for label in document.query("label[for]"):
            if label.get("for") == control_id:
                return label
    wrapping = control.find_parent("label")
    return wrapping if isinstance(wrapping, Tag) else None


def tab_order(node: Tag) -> int | None:
    raw = node.get("tabindex")
    if not isinstance(raw, str):
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def describe_node(node: Tag) -> str:
    classes = node.get("class")
    if isinstance(classes, list):
        class_text = ".".join(item for item in classes if item)
    elif isinstance(classes, str):
        class_text = ".".join(classes.split())
    else:
        class_text = ""
    return f"<{node.name}.{class_text}>" if class_text else f"<{node.name}>"


def _is_semantically_hidden(node: Tag) -> bool:
    role = node.get("role")
    if isinstance(role, str) and role.strip().lower() in HIDDEN_ROLES:
        return True
    return node.get("aria-hidden") == "true"


def _attribute_text(node: Tag, name: str) -> str:
    value = node.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return value.strip() if isinstance(value, str) else ""
