"""Database schema definitions for worklinks.

``work_items`` and ``workspace_members`` hold the minimal view of the
external work-item directory the link graph needs: workspace ownership,
project membership, display fields, and status.
"""

from __future__ import annotations

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS work_items (
    id            TEXT PRIMARY KEY,
    workspace_id  TEXT NOT NULL,
    project_id    TEXT NOT NULL,
    key           TEXT NOT NULL DEFAULT '',
    title         TEXT NOT NULL,
    type          TEXT NOT NULL DEFAULT 'TASK',
    status        TEXT NOT NULL DEFAULT 'TODO',
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_work_items_workspace ON work_items(workspace_id);
CREATE INDEX IF NOT EXISTS idx_work_items_project ON work_items(project_id);

CREATE TABLE IF NOT EXISTS workspace_members (
    workspace_id  TEXT NOT NULL,
    user_id       TEXT NOT NULL,
    created_at    TEXT NOT NULL,
    PRIMARY KEY (workspace_id, user_id)
);

CREATE TABLE IF NOT EXISTS work_item_links (
    id                   TEXT PRIMARY KEY,
    workspace_id         TEXT NOT NULL,
    source_work_item_id  TEXT NOT NULL,
    target_work_item_id  TEXT NOT NULL,
    link_type            TEXT NOT NULL,
    description          TEXT,
    created_by           TEXT NOT NULL DEFAULT '',
    created_at           TEXT NOT NULL,
    updated_at           TEXT NOT NULL,

    CHECK (source_work_item_id != target_work_item_id)
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_links_unique
  ON work_item_links(source_work_item_id, target_work_item_id, link_type);
CREATE INDEX IF NOT EXISTS idx_links_source_type ON work_item_links(source_work_item_id, link_type);
CREATE INDEX IF NOT EXISTS idx_links_target_type ON work_item_links(target_work_item_id, link_type);
CREATE INDEX IF NOT EXISTS idx_links_workspace ON work_item_links(workspace_id);
"""

CURRENT_SCHEMA_VERSION = 1
