from typing import Any, Callable, Dict, Optional, Set
import logging
import re

from ..errors import UpstreamError, ResolutionFailed
from ..utils import PROGRAM_LOGGER, as_dict, as_list


class LinkedDataResolver:
    """Finds the IIIF image identifier of a Linked Art object.

    The identifier is not inline in an object record. It sits on a digital
    object reached through shows -> VisualItem -> digitally_shown_by ->
    access_point, where each step may be embedded or a bare reference that has
    to be dereferenced. At most max_depth references are followed per chain
    and no URL is fetched twice. Anything unresolvable yields None.
    """

    def __init__(self, fetch: Callable[[str], Dict[str, Any]], iiif_host: str = "iiif.micr.io",
                 max_depth: int = 2, logger: Optional[logging.Logger] = None):
        self.fetch = fetch
        self.iiif_host = iiif_host
        self.max_depth = max_depth
        self.pattern = re.compile(re.escape(iiif_host) + r"/([^/?#]+)")
        self.logger = logger or logging.getLogger(PROGRAM_LOGGER)

    def resolve_image_identifier(self, record: Dict[str, Any]) -> Optional[str]:
        visited: Set[str] = set()
        for entry in as_list(as_dict(record).get('shows')):
            try:
                identifier = self._from_visual_item(as_dict(entry), 0, visited)
            except ResolutionFailed as e:
                self.logger.debug(f"Skipping visual item: {e}")
                continue
            if identifier:
                return identifier

        self.logger.debug(f"No IIIF identifier found for {as_dict(record).get('id')}")
        return None

    def match_identifier(self, url: Any) -> Optional[str]:
        if not isinstance(url, str):
            return None
        match = self.pattern.search(url)
        return match.group(1) if match else None

    def _is_reference(self, node: Dict[str, Any], *embedded_keys: str) -> bool:
        return bool(node.get('id')) and not any(key in node for key in embedded_keys)

    def _dereference(self, reference: str, depth: int, visited: Set[str]) -> Optional[Dict[str, Any]]:
        if depth >= self.max_depth or reference in visited:
            return None
        visited.add(reference)
        try:
            return as_dict(self.fetch(reference))
        except UpstreamError as e:
            raise ResolutionFailed(reference, str(e)) from e

    def _from_visual_item(self, node: Dict[str, Any], depth: int, visited: Set[str]) -> Optional[str]:
        if node.get('type') not in (None, 'VisualItem'):
            return None

        if self._is_reference(node, 'digitally_shown_by'):
            resolved = self._dereference(node['id'], depth, visited)
            if resolved is None:
                return None
            node = resolved
            depth += 1

        for digital_object in as_list(node.get('digitally_shown_by')):
            try:
                identifier = self._from_digital_object(as_dict(digital_object), depth, visited)
            except ResolutionFailed as e:
                self.logger.debug(f"Skipping digital object: {e}")
                continue
            if identifier:
                return identifier
        return None

    def _from_digital_object(self, node: Dict[str, Any], depth: int, visited: Set[str]) -> Optional[str]:
        if self._is_reference(node, 'access_point'):
            identifier = self.match_identifier(node['id'])
            if identifier:
                return identifier
            resolved = self._dereference(node['id'], depth, visited)
            if resolved is None:
                return None
            node = resolved

        for access_point in as_list(node.get('access_point')):
            access_point = as_dict(access_point)
            identifier = self.match_identifier(access_point.get('id') or access_point.get('@id'))
            if identifier:
                return identifier
        return None
