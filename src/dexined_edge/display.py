import cv2

INPUT_WINDOW = "Input"
OUTPUT_WINDOW = "Output"


class Display:
    """
    Side-by-side Input/Output windows via cv2.imshow.
    """

    def __init__(self, output_offset=(200, 0)):
        cv2.namedWindow(INPUT_WINDOW, cv2.WINDOW_AUTOSIZE)
        cv2.namedWindow(OUTPUT_WINDOW, cv2.WINDOW_AUTOSIZE)
        cv2.moveWindow(OUTPUT_WINDOW, *output_offset)

    def show(self, name, image):
        cv2.imshow(name, image)

    def poll_key(self, timeout_ms=1):
        """Key code pressed within timeout_ms, or None."""
        key = cv2.waitKey(timeout_ms)
        if key == -1:
            return None
        return key & 0xFF

    def wait_any_key(self):
        print("Press any key to exit")
        cv2.waitKey(0)

    def close(self):
        cv2.destroyAllWindows()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class NullDisplay:
    """Headless stand-in for Display (--no-display)."""

    def show(self, name, image):
        pass

    def poll_key(self, timeout_ms=1):
        return None

    def wait_any_key(self):
        pass

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False
