from PIL import Image

### DEFAULTS ###

# fingerprint grid (not configurable: fingerprints are only comparable at one size)
grid_size = 8
byte_order = "little"
luma_weights = (0.30, 0.59, 0.11)

resample = Image.Resampling.BICUBIC
threads = 8
output_format = "PNG"

font_size = 24
text_color = (0, 0, 0)
background_color = (255, 255, 255)
