from form_builder.state.model import FormState, PreviewMode, Theme
from form_builder.state.store import FormStore

__all__ = ["FormState", "FormStore", "PreviewMode", "Theme"]
