"""Attribute and element lookup tables used by the attribute and structure rules."""

from types import MappingProxyType
from typing import Mapping

# Host-language keywords that React spells differently.
RESERVED_PROPS: Mapping[str, str] = MappingProxyType({
    "class": "className",
    "for": "htmlFor",
})

# Lower-case HTML spellings and the prop name React expects.
CAMEL_CASE_ATTRIBUTES: Mapping[str, str] = MappingProxyType({
    "tabindex": "tabIndex",
    "readonly": "readOnly",
    "maxlength": "maxLength",
    "minlength": "minLength",
    "cellpadding": "cellPadding",
    "cellspacing": "cellSpacing",
    "rowspan": "rowSpan",
    "colspan": "colSpan",
    "usemap": "useMap",
    "frameborder": "frameBorder",
    "contenteditable": "contentEditable",
    "crossorigin": "crossOrigin",
    "datetime": "dateTime",
    "enctype": "encType",
    "formaction": "formAction",
    "formenctype": "formEncType",
    "formmethod": "formMethod",
    "formnovalidate": "formNoValidate",
    "formtarget": "formTarget",
    "hreflang": "hrefLang",
    "inputmode": "inputMode",
    "keyparams": "keyParams",
    "keytype": "keyType",
    "marginheight": "marginHeight",
    "marginwidth": "marginWidth",
    "mediagroup": "mediaGroup",
    "novalidate": "noValidate",
    "radiogroup": "radioGroup",
    "spellcheck": "spellCheck",
    "srcdoc": "srcDoc",
    "srclang": "srcLang",
    "srcset": "srcSet",
    "targetid": "targetId",
})

VOID_ELEMENTS = frozenset({
    "img",
    "input",
    "br",
    "hr",
    "meta",
    "link",
    "area",
    "base",
    "col",
    "embed",
    "source",
    "track",
    "wbr",
})
