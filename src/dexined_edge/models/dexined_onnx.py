import logging
import os

import numpy as np
import onnxruntime as ort

from dexined_edge.errors import ModelLoadError
from dexined_edge.models.base_processor import INPUT_SIZE, MEAN_BGR, BaseProcessor

log = logging.getLogger(__name__)

PROVIDER_CHOICES = ("auto", "dml", "cuda", "rocm", "tensorrt", "coreml", "openvino", "cpu")


class DexiNedONNX(BaseProcessor):
    def __init__(self, onnx_path, provider="auto", device_id=0, mean=MEAN_BGR, fused_index=-1):
        if not os.path.isfile(onnx_path):
            raise ModelLoadError(f"Model file not found: {onnx_path}")

        so = ort.SessionOptions()
        so.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        so.execution_mode = ort.ExecutionMode.ORT_SEQUENTIAL

        providers = self._build_providers(provider, device_id)

        try:
            self.session = ort.InferenceSession(
                onnx_path,
                sess_options=so,
                providers=providers
            )
        except Exception as exc:
            raise ModelLoadError(f"Cannot load ONNX model {onnx_path}: {exc}") from exc

        self.input_name = self.session.get_inputs()[0].name
        self.output_names = [o.name for o in self.session.get_outputs()]

        expected_hw = self._resolve_expected_hw()
        if expected_hw is not None:
            exp_h, exp_w = expected_hw
            print(f"Static model input detected: {exp_w}x{exp_h}")
            input_size = (exp_w, exp_h)
        else:
            input_size = INPUT_SIZE

        super().__init__(input_size=input_size, mean=mean, fused_index=fused_index)

        # Detect precision
        input_type = self.session.get_inputs()[0].type
        if "float16" in input_type:
            self.dtype = np.float16
            print("Running in FP16 mode")
        else:
            self.dtype = np.float32
            print("Running in FP32 mode")

        log.info("Loaded %s with %d outputs: %s", onnx_path, len(self.output_names), self.output_names)

    def _build_providers(self, provider, device_id):
        available = set(ort.get_available_providers())
        mode = provider.lower()
        if mode not in PROVIDER_CHOICES:
            raise ValueError(f"provider must be one of: {sorted(PROVIDER_CHOICES)}")

        resolved = []
        gpu_priority = [
            ("TensorrtExecutionProvider", None),
            ("CUDAExecutionProvider", None),
            ("ROCMExecutionProvider", None),
            ("DmlExecutionProvider", {"device_id": device_id}),
            ("CoreMLExecutionProvider", None),
            ("OpenVINOExecutionProvider", None),
        ]
        mode_to_ep = {
            "dml": ("DmlExecutionProvider", {"device_id": device_id}),
            "cuda": ("CUDAExecutionProvider", None),
            "rocm": ("ROCMExecutionProvider", None),
            "tensorrt": ("TensorrtExecutionProvider", None),
            "coreml": ("CoreMLExecutionProvider", None),
            "openvino": ("OpenVINOExecutionProvider", None),
        }

        if mode == "auto":
            for ep_name, ep_opts in gpu_priority:
                if ep_name in available:
                    resolved.append((ep_name, ep_opts) if ep_opts is not None else ep_name)
                    break
        elif mode != "cpu":
            ep_name, ep_opts = mode_to_ep[mode]
            if ep_name not in available:
                raise ModelLoadError(
                    f"{ep_name} is not available in this environment. "
                    f"Available providers: {sorted(available)}"
                )
            resolved.append((ep_name, ep_opts) if ep_opts is not None else ep_name)

        # CPU is always the last resort
        if "CPUExecutionProvider" in available:
            resolved.append("CPUExecutionProvider")
        elif mode == "cpu":
            raise ModelLoadError(
                f"CPUExecutionProvider is not available. Available providers: {sorted(available)}"
            )

        if not resolved:
            raise ModelLoadError(
                "No compatible execution provider found. "
                f"Available providers: {sorted(available)}"
            )

        print(f"ONNX providers: {resolved}")
        return resolved

    def _resolve_expected_hw(self):
        shape = self.session.get_inputs()[0].shape
        if len(shape) < 4:
            return None
        h = shape[2]
        w = shape[3]
        if isinstance(h, int) and isinstance(w, int) and h > 0 and w > 0:
            return (h, w)
        return None

    def preprocess(self, frame_bgr):
        blob = super().preprocess(frame_bgr)
        if self.dtype == np.float16:
            return blob.astype(np.float16)
        return blob

    def infer(self, tensor):
        outputs = self.session.run(None, {self.input_name: tensor})
        return [
            out.astype(np.float32, copy=False) if out.dtype == np.float16 else out
            for out in outputs
        ]
