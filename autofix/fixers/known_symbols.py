"""
Known Symbols
=============
Lookup tables shared by the deterministic fixers.

    COMMON_IMPORTS  — identifier → where generated components import it from
    PROP_TYPOS      — lower-cased DOM attribute → correctly-cased React prop
    VOID_ELEMENTS   — HTML elements that never have children

Tables only, no logic. Extend them here; every fixer reads from them.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class ImportInfo:
    """How an identifier is imported: module, and default / type-only flags."""
    source: str
    is_default: bool = False
    is_type: bool = False


_REACT = "react"
_ICONS = "lucide-react"
_MOTION = "motion/react"

# ---------------------------------------------------------------------------
# Identifier → import
# ---------------------------------------------------------------------------
COMMON_IMPORTS: dict[str, ImportInfo] = {
    # React
    "React": ImportInfo(_REACT, is_default=True),
    **{name: ImportInfo(_REACT) for name in (
        "useState", "useEffect", "useCallback", "useMemo", "useRef", "useContext",
        "useReducer", "useLayoutEffect", "useId", "createContext", "forwardRef",
        "memo", "lazy", "Suspense", "Fragment",
    )},

    # React types
    **{name: ImportInfo(_REACT, is_type=True) for name in (
        "FC", "ReactNode", "ReactElement", "CSSProperties", "ChangeEvent",
        "FormEvent", "MouseEvent", "KeyboardEvent",
    )},

    # Icons
    **{name: ImportInfo(_ICONS) for name in (
        "Search", "X", "Check", "ChevronDown", "ChevronUp", "ChevronLeft",
        "ChevronRight", "Menu", "Settings", "User", "Home", "Plus", "Minus", "Edit",
        "Trash", "Trash2", "Download", "Upload", "Eye", "EyeOff", "Lock", "Info",
        "AlertCircle", "AlertTriangle", "Loader2", "RefreshCw", "Copy",
        "ExternalLink", "Send", "Play", "Pause", "Save", "Undo", "Redo", "Bot",
        "Sparkles", "Code", "Terminal",
    )},

    # Animation
    **{name: ImportInfo(_MOTION) for name in (
        "motion", "AnimatePresence", "useAnimation", "useMotionValue",
    )},

    # Utilities
    "clsx": ImportInfo("clsx", is_default=True),
    "cn": ImportInfo("clsx", is_default=True),
    "axios": ImportInfo("axios", is_default=True),
}


def is_known_symbol(identifier: str) -> bool:
    return identifier in COMMON_IMPORTS


# ---------------------------------------------------------------------------
# Attribute spelling
# ---------------------------------------------------------------------------
PROP_TYPOS: dict[str, str] = {
    "classname": "className",
    "onclick": "onClick",
    "onchange": "onChange",
    "onsubmit": "onSubmit",
    "onfocus": "onFocus",
    "onblur": "onBlur",
    "onkeydown": "onKeyDown",
    "onkeyup": "onKeyUp",
    "onkeypress": "onKeyPress",
    "onmouseenter": "onMouseEnter",
    "onmouseleave": "onMouseLeave",
    "tabindex": "tabIndex",
    "readonly": "readOnly",
    "autocomplete": "autoComplete",
    "autofocus": "autoFocus",
    "htmlfor": "htmlFor",
    "srcset": "srcSet",
    "rowspan": "rowSpan",
    "colspan": "colSpan",
    "cellpadding": "cellPadding",
    "cellspacing": "cellSpacing",
    "maxlength": "maxLength",
    "minlength": "minLength",
    "contenteditable": "contentEditable",
    "crossorigin": "crossOrigin",
    "datetime": "dateTime",
    "enctype": "encType",
    "formaction": "formAction",
    "formenctype": "formEncType",
    "formmethod": "formMethod",
    "formnovalidate": "formNoValidate",
    "formtarget": "formTarget",
    "frameborder": "frameBorder",
    "marginheight": "marginHeight",
    "marginwidth": "marginWidth",
    "novalidate": "noValidate",
    "spellcheck": "spellCheck",
    "srcdoc": "srcDoc",
    "usemap": "useMap",
}

# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------
# Ordered so fixers and validators iterate deterministically
VOID_ELEMENTS: tuple[str, ...] = (
    "img", "br", "hr", "input", "meta", "link", "area", "base", "col", "embed",
    "param", "source", "track", "wbr",
)
