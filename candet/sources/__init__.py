"""Frame sources.

Modules:
    base   — FrameSource protocol
    video  — OpenCV VideoCapture source (camera index, file, stream, GStreamer)
"""
