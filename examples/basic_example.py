"""
Example: Compress an in-memory image and a file with kdu_compress

Requires KAKADU_HOME to point at a directory containing kdu_compress.
"""

import io

import numpy as np
from PIL import Image

from jp2bridge import EncodeParameters, JP2Compressor, get_level_count

# Create a sample image
print("Creating sample image...")
width, height = 2048, 1536
image_array = np.zeros((height, width, 3), dtype=np.uint8)
image_array[..., 0] = np.arange(width) % 256
image_array[..., 1] = (np.arange(height) % 256)[:, None]
image_array[..., 2] = 128

sample_image = Image.fromarray(image_array)
sample_image.save('/tmp/sample_original.png')
print(f"Sample image saved to /tmp/sample_original.png")
print(f"Default resolution levels: {get_level_count(width, height)}")

compressor = JP2Compressor()

# Compress the in-memory image into a buffer
print("\nCompressing in-memory image...")
buffer = io.BytesIO()
compressor.compress_image(sample_image, buffer)
print(f"Compressed size: {len(buffer.getvalue()) / 1024:.2f} KB")

# Compress the PNG file at a few target rates
print("\n" + "=" * 50)
print("Testing different rates:")
print("=" * 50)

for rate in [0.5, 1.0, 2.0]:
    params = EncodeParameters(rate=rate, color_space='sRGB')
    output = f'/tmp/sample_rate_{rate}.jp2'
    compressor.compress_file('/tmp/sample_original.png', output, params)
    print(f"rate={rate}: {output}")
