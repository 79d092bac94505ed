CURRENT_PRESET_VERSION = 1
