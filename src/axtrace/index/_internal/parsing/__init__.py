"""Line-oriented Swift source parsing: pure ``text -> entries`` functions."""
