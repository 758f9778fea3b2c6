import sys
import tempfile
from pathlib import Path

import numpy as np
from PIL import Image

from autentica import DefinitionAnalyzer, SignatureAnalyzer, analyze_vector


def main():
    print("--- Image Authenticity Scoring (Python) ---")

    if len(sys.argv) > 1:
        image_path = Path(sys.argv[1])
    else:
        # Soft synthetic scene: smooth ramp plus mild sensor-like noise
        rng = np.random.default_rng(0)
        ramp = np.tile(np.linspace(40, 220, 256), (256, 1))
        pixels = np.clip(ramp + rng.normal(0, 3, ramp.shape), 0, 255).astype(np.uint8)
        image_path = Path(tempfile.mkdtemp()) / "sample.jpg"
        exif = Image.Exif()
        exif[0x0110] = "iPhone 15 Pro"
        Image.fromarray(pixels).save(image_path, format="JPEG", quality=92, exif=exif)

    print(f"Analyzing image: {image_path}")

    for analyzer in (DefinitionAnalyzer(), SignatureAnalyzer()):
        result = analyzer.analyze(str(image_path), "example", image_path.name)
        print(f"\n[{result.analyzer_name}]")
        print(f"Score: {result.score}")
        print(f"Message: {result.details.get('message')}")
        print(f"Duration: {result.duration_ms} ms")

    print("\n[color vector]")
    result = analyze_vector("color", [0.5, 0.5, 0.5, 0.55, 1, 1, 1, 0.5, 0.5, 1])
    print(f"Score: {result.score:.4f}")
    print(f"Interpretation: {result.details['interpretation']}")
    print(f"Model loaded: {result.metadata['model_loaded']}")


if __name__ == "__main__":
    main()
