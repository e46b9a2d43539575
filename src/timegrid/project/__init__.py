"""Timeline document schema and migration exports."""

from timegrid.project.migration import migrate_to_v2
from timegrid.project.schema import GridSettingsRecord, IntervalRecord, TimelineDocumentV2, TimelineMeta

__all__ = ["GridSettingsRecord", "IntervalRecord", "TimelineDocumentV2", "TimelineMeta", "migrate_to_v2"]
