import os

# Qt ohne Display (CI)
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
