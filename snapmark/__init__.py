"""
SnapMark - Screenshot capture and raster annotation engine.

This package contains the main application modules:
- core: Capture scheduling and area/crop calculation
- editor: Pixel buffer, shape rasterizer, compositor and stroke handling
- services: Application services (config, logging)
"""

__version__ = "0.1.0"
