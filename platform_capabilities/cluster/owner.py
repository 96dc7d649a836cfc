"""
Ownership

Owner-reference computation and metadata options applied to every object the
platform writes, so that the cluster garbage-collects them with their owner.
"""

from typing import Any, Callable, Dict, Mapping

from ..core.constants import ErrorMessages
from ..core.exceptions import ConfigurationError
from ..data_models import OwnerReference

MetaOption = Callable[[Dict[str, Any]], None]


def _field(obj: Any, *names: str) -> Any:
    """Read a field from a mapping or a kubernetes client model, trying each name"""
    for name in names:
        if isinstance(obj, Mapping):
            value = obj.get(name)
        else:
            value = getattr(obj, name, None)
        if value is not None:
            return value
    return None


def as_owner_ref(owner: Any) -> OwnerReference:
    """
    Compute an owner reference for an object.

    Accepts a raw object dict (``{'apiVersion': ..., 'kind': ..., 'metadata': {...}}``)
    or a kubernetes client model exposing ``api_version``, ``kind`` and ``metadata``.

    Args:
        owner: Object owning everything the capability applies

    Returns:
        OwnerReference pointing at the owner

    Raises:
        ConfigurationError: If the owner lacks apiVersion, kind, name or uid
    """
    if owner is None:
        raise ConfigurationError(ErrorMessages.OWNER_REFERENCE_INVALID.format(owner=None, reason="owner is not set"))

    metadata = _field(owner, 'metadata') or {}
    values = {
        'apiVersion': _field(owner, 'apiVersion', 'api_version'),
        'kind': _field(owner, 'kind'),
        'name': _field(metadata, 'name'),
        'uid': _field(metadata, 'uid'),
    }
    missing = [key for key, value in values.items() if not value]
    if missing:
        raise ConfigurationError(ErrorMessages.OWNER_REFERENCE_INVALID.format(
            owner=values['name'] or type(owner).__name__,
            reason=f"missing {', '.join(missing)}"
        ))

    return OwnerReference(
        api_version=values['apiVersion'],
        kind=values['kind'],
        name=values['name'],
        uid=values['uid'],
    )


def with_owner_reference(owner_ref: OwnerReference) -> MetaOption:
    """Meta option setting (or replacing) the owner reference with the same uid"""
    def apply(obj: Dict[str, Any]) -> None:
        metadata = obj.setdefault('metadata', {})
        references = [ref for ref in metadata.get('ownerReferences', []) if ref.get('uid') != owner_ref.uid]
        references.append(owner_ref.to_dict())
        metadata['ownerReferences'] = references
    return apply


def with_labels(labels: Mapping[str, str]) -> MetaOption:
    """Meta option merging labels into the object"""
    def apply(obj: Dict[str, Any]) -> None:
        metadata = obj.setdefault('metadata', {})
        metadata['labels'] = {**(metadata.get('labels') or {}), **labels}
    return apply


def with_annotations(annotations: Mapping[str, str]) -> MetaOption:
    """Meta option merging annotations into the object"""
    def apply(obj: Dict[str, Any]) -> None:
        metadata = obj.setdefault('metadata', {})
        metadata['annotations'] = {**(metadata.get('annotations') or {}), **annotations}
    return apply


def apply_meta_options(obj: Dict[str, Any], *options: MetaOption) -> Dict[str, Any]:
    """Apply meta options in order and return the same object"""
    for option in options:
        option(obj)
    return obj
