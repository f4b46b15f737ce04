"""Top‑level package for Music OS.

Music OS organises a personal music library: songs are downloaded into
category folders under a library root (``~/Music`` by default) and can
be grouped into named *tags*, playlists stored together in a single
``tags.json`` file at the library root.

The public API surface consists of the following key classes and
functions:

* :class:`music_os.tag_store.TagStore` – loads, validates, mutates and
  atomically writes ``tags.json``.
* :func:`music_os.merge.merge_songs` – computes a tag's new song list in
  replace or append mode.
* :class:`music_os.config_service.ConfigService` – resolves and loads
  the user configuration.
* :mod:`music_os.cli` – the ``music-os`` command‑line interface built on
  :mod:`argparse`.

Run ``python -m music_os --help`` to use the CLI.
"""

from .config_service import ConfigService  # noqa: F401
from .merge import MergeMode, merge_songs  # noqa: F401
from .models import TagRecord  # noqa: F401
from .tag_store import TagStore, change_songs_in_tag  # noqa: F401

__version__ = "0.1.0"
