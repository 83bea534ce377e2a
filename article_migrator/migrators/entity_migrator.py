"""
Article migration: one pass over the published articles of a source.

Every candidate ends in exactly one :class:`ArticleOutcome`.  Dependencies of
an article (terms, field images, inline images) are resolved before the
article itself is written, so a destination article never points at
something that failed to migrate.  Failures are contained per article; only
a violated mapping invariant stops the run.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..extractors.base import SourceArticleReader
from ..models.content import DestinationArticle, DestinationAsset, EntityKind, SourceArticle
from ..models.run import ArticleOutcome, MigrationReport, RunCache
from ..models.settings import MigrationSettings, ReferencePolicy
from ..parsers.html_rewriter import image_sources, normalize_markup, rewrite_images
from ..parsers.video_embed import append_video
from ..stores.base import AliasStore, EntityStore
from ..utils.errors import report_error, report_ok
from .aliases import AliasMigrator, canonical_path
from .asset_transfer import AssetTransfer, stored_as
from .file_resolver import FileResolver
from .mapping_store import DuplicateMappingError, MappingStore
from .term_resolver import TermResolver

logger = logging.getLogger(__name__)


def _union(first: List[str], second: List[str]) -> List[str]:
    merged = list(first)
    for item in second:
        if item not in merged:
            merged.append(item)
    return merged


class ArticleMigrator:
    """
    Migrates articles of one source scope into the destination stores.

    All collaborators are passed in; the migrator builds nothing itself.
    """

    def __init__(
        self,
        reader: SourceArticleReader,
        mapping: MappingStore,
        entity_store: EntityStore,
        alias_store: AliasStore,
        terms: TermResolver,
        files: FileResolver,
        transfer: AssetTransfer,
        aliases: AliasMigrator,
        settings: MigrationSettings,
    ):
        self.reader = reader
        self.mapping = mapping
        self.entity_store = entity_store
        self.alias_store = alias_store
        self.terms = terms
        self.files = files
        self.transfer = transfer
        self.aliases = aliases
        self.settings = settings
        self._domain_warning_sent = False

    @property
    def scope(self) -> str:
        return self.mapping.scope

    def run(self, cache: RunCache, limit: Optional[int] = None) -> MigrationReport:
        """
        Migrate up to ``limit`` published articles, oldest source id first.

        Raises:
            DuplicateMappingError: If another run recorded the same entity
                concurrently; the run stops immediately.
        """
        report = MigrationReport(scope=self.scope, started_at=datetime.now())
        limit = self.settings.limit if limit is None else limit

        for row in self.reader.iter_candidates(limit):
            source_id = str(row["nid"])
            item = {"kind": "node", "source_id": source_id, "title": row.get("title")}
            try:
                outcome = self.migrate_one(row, cache, report)
            except DuplicateMappingError:
                raise
            except Exception as e:
                report.errors.append(report_error("ARTICLE_FAILED", item, e))
                outcome = ArticleOutcome.FAILED
            report.record(source_id, outcome)
            logger.info("Article %s: %s", source_id, outcome.value)

        report.completed_at = datetime.now()
        logger.info("Migration of '%s' finished: %s", self.scope, report.summary())
        return report

    def migrate_one(self, row: Dict[str, Any], cache: RunCache, report: MigrationReport) -> ArticleOutcome:
        source_id = str(row["nid"])

        if self.reader.is_excluded(source_id):
            return ArticleOutcome.SKIPPED_EXCLUDED

        dest_id = self.mapping.lookup(EntityKind.NODE, source_id)
        if dest_id and not self.settings.update_existing:
            return ArticleOutcome.SKIPPED_DUPLICATE

        article = self.reader.read_article(row)
        if not article.title.strip():
            logger.info("Article %s has no title, skipping", source_id)
            return ArticleOutcome.SKIPPED_NOT_ELIGIBLE

        item = {"kind": "node", "source_id": source_id, "title": article.title}
        current = None
        if dest_id:
            current = self.entity_store.load("node", dest_id)
            if current is None:
                report.errors.append(report_error("ARTICLE_LOAD", {**item, "dest_id": dest_id}))
                return ArticleOutcome.FAILED

        tag_refs = [ref for ref in (self.terms.resolve(tid) for tid in article.tag_ids) if ref]
        image_refs = [ref for ref in (self.files.resolve(fid) for fid in article.image_ids) if ref]
        if current is not None and self.settings.reference_policy == ReferencePolicy.MERGE:
            tag_refs = _union(current.get("tag_refs") or [], tag_refs)
            image_refs = _union(current.get("image_refs") or [], image_refs)

        previous_images: List[DestinationAsset] = []
        if current is not None:
            previous_images = self.transfer.asset_store.list_directory(
                self.transfer.body_image_directory(self.scope, source_id)
            )
        body = self._transform_body(article, item, report, previous_images)

        destination = DestinationArticle(
            title=article.title,
            body_html=body,
            body_format=article.body_format,
            status=1,
            author_id=cache.resolve_author(article.author_id),
            created_at=article.created_at,
            updated_at=article.updated_at,
            tag_refs=tag_refs,
            image_refs=image_refs,
        )
        self._assign_domains(destination, report)

        if dest_id:
            self.entity_store.update("node", dest_id, destination.to_fields())
            self._prune_body_images(previous_images, body)
            report_ok("ARTICLE_UPDATED", item, {"dest_id": dest_id})
            outcome = ArticleOutcome.UPDATED
        else:
            dest_id = self.entity_store.create("node", destination.to_fields())
            self.mapping.record(EntityKind.NODE, source_id, dest_id)
            report_ok("ARTICLE_CREATED", item, {"dest_id": dest_id})
            outcome = ArticleOutcome.CREATED

        try:
            self.aliases.migrate(EntityKind.NODE, source_id, dest_id)
        except Exception as e:
            report.errors.append(report_error("ALIAS_FAILED", item, e))

        report.redirects.append(self._redirect_entry(source_id, dest_id))
        return outcome

    def _transform_body(
        self,
        article: SourceArticle,
        item: Dict[str, Any],
        report: MigrationReport,
        previous_images: List[DestinationAsset],
    ) -> str:
        body, recognized = append_video(article.body_html, article.video_url)
        if not recognized:
            report.errors.append(report_error("VIDEO_UNRECOGNIZED", {**item, "video_url": article.video_url}))

        normalize = self.reader.supports_markup_normalization and self.settings.normalize_markup
        if normalize:
            body = normalize_markup(body)

        def import_image(src: str) -> Optional[str]:
            asset = self.transfer.transfer_body_image(src, self.scope, article.id)
            if asset is not None:
                return asset.url
            basename = self.transfer.body_image_basename(src) if not src.lower().startswith("data:") else ""
            for kept in previous_images:
                if basename and stored_as(kept, basename):
                    logger.info("Keeping the copy of %s imported by an earlier run", src)
                    return kept.url
            report.errors.append(report_error("BODY_IMAGE", {**item, "src": src}))
            return None

        body = rewrite_images(body, image_importer=import_image)
        if normalize:
            # Removed images can leave their paragraph empty.
            body = normalize_markup(body)
        return body

    def _prune_body_images(self, previous_images: List[DestinationAsset], body: str) -> None:
        """Delete body images of the previous version that the new body no longer shows."""
        in_use = set(image_sources(body))
        for asset in previous_images:
            if asset.url not in in_use and self.transfer.asset_store.delete(asset.id):
                logger.info("Deleted body image %s, no longer referenced", asset.uri)

    def _assign_domains(self, article: DestinationArticle, report: MigrationReport) -> None:
        domains = self.settings.domains
        if not domains:
            return
        if not self.entity_store.has_field("node", "domain_refs"):
            if not self._domain_warning_sent:
                report.errors.append(
                    report_error("DOMAIN_UNSUPPORTED", {"kind": "node", "source_id": None, "title": ", ".join(domains)})
                )
                self._domain_warning_sent = True
            return

        article.domain_refs = list(domains)
        if self.settings.skip_canonical_domain:
            return
        if self.entity_store.has_field("node", "canonical_domain"):
            article.canonical_domain = domains[0]
        else:
            logger.warning("Destination has no canonical domain field, '%s' not set as canonical", domains[0])

    def _redirect_entry(self, source_id: str, dest_id: str) -> Dict[str, str]:
        aliases = self.alias_store.find_by_path(canonical_path(EntityKind.NODE, dest_id))
        return {
            "OldPath": canonical_path(EntityKind.NODE, source_id),
            "NewPath": canonical_path(EntityKind.NODE, dest_id),
            "Alias": aliases[0].alias if aliases else "",
        }
