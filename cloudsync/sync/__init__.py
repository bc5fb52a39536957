"""
cloudsync.sync - Snapshot model and sync orchestration

Modules:
    snapshot  Snapshot wire model
    engine    SyncOrchestrator, SyncState and the operation log
    insights  Advisory browsing-trend analysis
"""
