"""
Top-level package for the legacy article migration utility.

This package bundles all components required to read articles, taxonomy
terms, files and aliases from a legacy content database, carry them over to
a destination content store exactly once, and remove them again.  Modules
are split into subpackages:

* :mod:`article_migrator.extractors` – source database access and the two
  schema layout readers
* :mod:`article_migrator.parsers` – body markup normalization, inline image
  rewriting and video embeds
* :mod:`article_migrator.migrators` – mapping ledger, asset transfer, term
  and file resolution, article migration and reversal
* :mod:`article_migrator.stores` – destination entity, alias and asset stores
* :mod:`article_migrator.models` – pydantic models and run reports
* :mod:`article_migrator.utils` – reports, redirects, pre-flight checks and
  logging setup

Orchestration is handled in :mod:`article_migrator.migration_tool`.
"""

__version__ = "0.1.0"
