"""
The CONTROLLER layer turns editing gestures into model edits.
It reads and writes vertex marks and asks the model to move, cut and combine polygons.
"""
