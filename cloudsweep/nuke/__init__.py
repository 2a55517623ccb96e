"""Batch deletion orchestration.

Modules:
    orchestrator: Bounded-concurrency deletion with confirmation wait
    waiter: Polling until a provider confirms removal
    dependency: Resource type ordering and children-before-parent teardown
    resource: Capability interface implemented per resource type
    runner: Lists, filters, deletes and reports a set of resource types
"""
