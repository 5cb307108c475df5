"""
The MODEL layer contains pure data structures and numerical logic.
It has NO knowledge of the rendering surface or any GUI.
It deals with Lattices, Transforms, Shading, and I/O.
"""
