import logging

import av
import cv2
from streamlit_webrtc import RTCConfiguration, VideoProcessorBase

logger = logging.getLogger(__name__)


def annotate_frame(img, predictions, max_lines=3):
    """Draw the ranked predictions in the top-left corner of a BGR frame"""
    for i, pred in enumerate(predictions[:max_lines]):
        label = f"{pred['className']}: {pred['probability']:.2f}"
        y = 30 + i * 28
        color = (0, 255, 0) if i == 0 else (255, 255, 255)

        (text_width, text_height), baseline = cv2.getTextSize(
            label, cv2.FONT_HERSHEY_SIMPLEX, 0.7, 2
        )
        cv2.rectangle(img, (5, y - text_height - 6), (15 + text_width, y + baseline), (0, 0, 0), -1)
        cv2.putText(img, label, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2)
    return img


class ClassifierVideoProcessor(VideoProcessorBase):
    def __init__(self):
        self.classifier = None
        self.flipped = True
        self.max_predictions = 3
        self.frame_skip = 2  # Process every N frames for performance
        self.frame_count = 0
        self.last_predictions = []

    def set_classifier(self, classifier):
        self.classifier = classifier

    def set_parameters(self, flipped, max_predictions, frame_skip=2):
        self.flipped = flipped
        self.max_predictions = max_predictions
        self.frame_skip = max(1, frame_skip)

    def classify(self, img_bgr):
        """Classify a BGR frame, reusing the last result on skipped frames"""
        self.frame_count += 1
        if self.classifier is None:
            return []

        if self.frame_count % self.frame_skip == 0 or not self.last_predictions:
            img_rgb = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2RGB)
            self.last_predictions = self.classifier.predict(
                img_rgb, flipped=self.flipped, max_predictions=self.max_predictions
            )
            logger.debug("Frame %d: %s", self.frame_count, self.last_predictions[:1])
        return self.last_predictions

    def recv(self, frame):
        img = frame.to_ndarray(format="bgr24")

        if self.classifier is None:
            cv2.putText(img, "Load a Teachable Machine model first",
                        (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 0, 255), 2)
        else:
            predictions = self.classify(img)
            if self.flipped:
                img = cv2.flip(img, 1)
            annotate_frame(img, predictions)

        return av.VideoFrame.from_ndarray(img, format="bgr24")


def get_webrtc_config():
    """Get WebRTC configuration"""
    return RTCConfiguration({
        "iceServers": [{"urls": ["stun:stun.l.google.com:19302"]}]
    })
