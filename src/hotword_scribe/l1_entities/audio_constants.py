"""Audio format constants shared by every layer."""

SAMPLE_RATE = 16000
CHANNELS = 1
SAMPLE_WIDTH = 2  # int16
FRAME_SAMPLES = 1280  # 80 ms, the frame size openwakeword is trained on
