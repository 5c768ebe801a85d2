from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Site


class SiteDirectory(Protocol):
    """Read-only view over the externally managed site roster."""

    def list_active_sites(self) -> Sequence[Site]:
        raise NotImplementedError


def find_active_site(directory: SiteDirectory, site_id: int) -> Optional[Site]:
    for site in directory.list_active_sites():
        if site.site_id == int(site_id):
            return site
    return None
