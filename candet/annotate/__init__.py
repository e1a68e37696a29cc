"""Interactive annotation and export.

Modules:
    session   — AnnotationSession edit state machine
    render    — overlay drawing and the Renderer protocol / OpenCV window
    exporter  — YOLO label store and frame artifacts
"""
