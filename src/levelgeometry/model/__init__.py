"""
The MODEL layer contains pure data structures and geometry.
It has NO knowledge of input handling or rendering.
It deals with Vertices, Polygons and the boolean backend.
"""
