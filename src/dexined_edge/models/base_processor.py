import time

import cv2

from dexined_edge.postprocess import postprocess_outputs

# DexiNed was trained on 512x512 BGR crops with these channel means
INPUT_SIZE = (512, 512)
MEAN_BGR = (103.5, 116.2, 123.6)


def make_blob(frame_bgr, size=INPUT_SIZE, mean=MEAN_BGR):
    """
    BGR uint8 frame -> float32 (1,3,H,W) blob, mean-subtracted, no scaling
    """
    return cv2.dnn.blobFromImage(
        frame_bgr,
        scalefactor=1.0,
        size=size,
        mean=mean,
        swapRB=False,
        crop=False,
        ddepth=cv2.CV_32F,
    )


class BaseProcessor:
    """
    Edge detector interface.
    Every inference backend (ONNX Runtime, OpenCV DNN) implements infer().
    """

    def __init__(self, input_size=INPUT_SIZE, mean=MEAN_BGR, fused_index=-1):
        self.input_size = tuple(input_size)
        self.mean = tuple(mean)
        self.fused_index = fused_index

    def preprocess(self, frame):
        """
        Convert raw frame (numpy array) into model-ready blob.
        """
        return make_blob(frame, self.input_size, self.mean)

    def infer(self, tensor):
        """
        Run model inference, returning the list of raw output tensors.
        """
        raise NotImplementedError

    def postprocess(self, outputs, height, width):
        """
        Convert raw outputs into EdgeMaps at the frame's resolution.
        """
        return postprocess_outputs(outputs, height, width, self.fused_index)

    def process(self, frame):
        """
        Full pipeline: frame -> blob -> inference -> EdgeMaps
        """
        h, w = frame.shape[:2]
        tensor = self.preprocess(frame)
        outputs = self.infer(tensor)
        return self.postprocess(outputs, h, w)

    def process_timed(self, frame):
        """
        Same as process(), plus preprocess/run/postprocess times in ms.
        """
        h, w = frame.shape[:2]
        t0 = time.perf_counter()
        tensor = self.preprocess(frame)
        t1 = time.perf_counter()
        outputs = self.infer(tensor)
        t2 = time.perf_counter()
        maps = self.postprocess(outputs, h, w)
        t3 = time.perf_counter()
        return maps, (t1 - t0) * 1000.0, (t2 - t1) * 1000.0, (t3 - t2) * 1000.0
