# framestages

Post-processing stages for camera frames, written in Python with numpy.
Each stage works on frame buffers or network outputs that you hand it and
gives its results back as Python values.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `framestages.geometry`: frozen `Point`, `Size` and `Rectangle`
  dataclasses. `Rectangle` offers `bounded_to` (intersection),
  `translated_by`, `scaled_by`, `enclosed_in`, `center`, `area`,
  `top_left` and `size`. `Size` offers `bounded_to_aspect_ratio` and
  `centered_to`.
- `framestages.negate`: `negate(buffer)` inverts every byte of a writable
  buffer in place.
- `framestages.motion_detect`: `MotionDetectConfig` (built with
  `from_dict`) and `MotionDetector`. The detector compares a region of
  interest of a low resolution luma plane with the same region in the
  previous frame it looked at. `process(image, sequence)` returns `True`
  or `False`, or `None` for frames skipped by `frame_period`.
- `framestages.classify`: `ObjectClassifyConfig`, `ObjectClassifier`,
  `read_labels` and `format_annotation`. The classifier keeps the top
  `number_of_results` classes. A class between `threshold_low` and
  `threshold_high` is kept only if it was among the previous results.
- `framestages.object_detect`: `Detection`, `ObjectDetectConfig`,
  `read_labels` and `ObjectDetector`. The detector maps boxes from a
  300x300 network input, taken as a centred crop of the lores image, into
  main image coordinates. Where two boxes of the same class overlap, it
  keeps the one with the higher confidence.
- `framestages.pose_estimation`: `check_output_dims` and
  `interpret_pose_outputs`, which find the peak of each of 17 keypoint
  heatmaps on a 9x9 grid and refine it with the offsets.
- `framestages.imx500`: helpers for a camera that runs inference on the
  sensor.
  - `InferenceConverter` maps normalised inference coordinates to ISP
    output coordinates. Its `roi_abs` and `roi_auto` compute inference
    regions.
  - `InputTensorEncoder` reverses the input normalisation of raw input
    tensor bytes, and `conv_reg_signed` is the register conversion it
    uses.
  - `parse_progress` and `format_progress` read and format firmware
    upload progress text.
- `framestages.tracking`: `TemporalFilterConfig` and `TemporalFilter`.
  The filter matches detections across frames and smooths their boxes.
  A new object stays hidden for `hidden_frames` matches, and a vanished
  object stays for `visible_frames` frames.
- `framestages.imx500_detection`: `parse_detection_tensor`,
  `Imx500DetectionConfig` and `Imx500ObjectDetector`. These decode a
  flat detection tensor into `Detection` objects, with optional temporal
  filtering. When a frame has no tensor, the previous results are
  reported again.
- `framestages.hailo`:
  - `OutTensor` and `sort_out_tensors`, which orders tensors by width.
  - `copy_unpadded_rows`, which strips stride padding.
  - `convert_inference_coordinates`, which maps normalised coordinates
    through a pair of scaler crops.

## Examples

```python
import numpy as np
from framestages.motion_detect import MotionDetectConfig, MotionDetector

config = MotionDetectConfig.from_dict({"frame_period": 1, "region_threshold": 0.01})
detector = MotionDetector(config, width=128, height=96, stride=128)

still = np.zeros(128 * 96, dtype=np.uint8)
moved = still.copy()
moved[:2000] = 200

detector.process(still, sequence=0)         # first frame primes the detector
print(detector.process(moved, sequence=1))  # True
```

```python
from framestages.classify import ObjectClassifier, ObjectClassifyConfig

classifier = ObjectClassifier(ObjectClassifyConfig(), ["a:cat, x", "b:dog"], output_size=2)
classifier.interpret([200, 10])
print(classifier.annotation())  # Detected: cat 0.78
```

```python
from framestages.geometry import Rectangle

print(Rectangle(0, 0, 10, 10).bounded_to(Rectangle(5, 5, 10, 10)))  # (5, 5)/5x5
```

## What it does not do

The package only works on data you pass in.

- It does not open cameras or accelerator devices.
- It does not run neural networks, load models or firmware.
- It does not draw boxes, labels or poses onto images.
- It does not save JPEGs.
- It has no command-line program.
- It does not accumulate frames for HDR or tone mapping.
- It does not decode multi-person poses.