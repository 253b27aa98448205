"""Durable plan store.

One JSON document holds every plan. All reads and writes are serialized
through PlanStore; nothing else touches the file.
"""
