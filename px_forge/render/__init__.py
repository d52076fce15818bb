"""px_forge.render — pixel producers and encoders.

Shape rendering, compositing, sheet packing, quantization, shader effects and
the PNG/atlas/cartridge writers. Depends on px_forge.core only.
"""
