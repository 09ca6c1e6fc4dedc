"""Audio buffers, layout conversion and file I/O"""
