import logging
import os

import cv2

from dexined_edge.errors import ModelLoadError
from dexined_edge.models.base_processor import INPUT_SIZE, MEAN_BGR, BaseProcessor

log = logging.getLogger(__name__)


class DexiNedOpenCV(BaseProcessor):
    """
    DexiNed on OpenCV's DNN module (default backend, CPU target).
    """

    def __init__(self, onnx_path, input_size=INPUT_SIZE, mean=MEAN_BGR, fused_index=-1):
        super().__init__(input_size=input_size, mean=mean, fused_index=fused_index)

        if not os.path.isfile(onnx_path):
            raise ModelLoadError(f"Model file not found: {onnx_path}")

        try:
            self.net = cv2.dnn.readNetFromONNX(onnx_path)
        except cv2.error as exc:
            raise ModelLoadError(f"Cannot load ONNX model {onnx_path}: {exc}") from exc
        if self.net.empty():
            raise ModelLoadError(f"OpenCV returned an empty network for {onnx_path}")

        self.net.setPreferableBackend(cv2.dnn.DNN_BACKEND_DEFAULT)
        self.net.setPreferableTarget(cv2.dnn.DNN_TARGET_CPU)
        self.output_names = list(self.net.getUnconnectedOutLayersNames())
        print("OpenCV DNN backend: default / CPU")
        log.info("Loaded %s with %d outputs: %s", onnx_path, len(self.output_names), self.output_names)

    def infer(self, tensor):
        self.net.setInput(tensor)
        return list(self.net.forward(self.output_names))
