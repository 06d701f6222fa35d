from .meta import ParamMeta
from .meta_spec import meta_dict_from_user, meta_from_spec

__all__ = ["ParamMeta", "meta_dict_from_user", "meta_from_spec"]
