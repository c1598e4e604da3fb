"""
hubsync - Event / Edition / Slot migration between content hubs

Exports scheduling-aware content (Events, their Editions and Slots, and the
content Snapshots the Slots point at) from one hub and imports it into
another:
- Cross-hub identity mapping that makes repeated imports resumable
- Slot content reference rewriting backed by freshly created Snapshots
- Edition publish scheduling with unschedule / reschedule handling
"""

__version__ = "0.1.0"
