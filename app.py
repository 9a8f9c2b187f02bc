import streamlit as st
from pathlib import Path
from PIL import Image
import json
import sys

# Add src to path
sys.path.append(str(Path(__file__).parent / "src"))

from teachable_mobilenet import (
    CustomMobileNet,
    InvalidInputError,
    MobileNetConfig,
    TeachableMobileNetError,
    load,
    load_from_files,
)
from teachable_mobilenet.camera_utils import ClassifierVideoProcessor, get_webrtc_config
from teachable_mobilenet.metadata import is_url
from teachable_mobilenet.model_loader import get_model_info
from streamlit_webrtc import webrtc_streamer

# Page config
st.set_page_config(
    page_title="Teachable Machine Image Classifier",
    page_icon="🧠",
    layout="wide"
)

CONFIG = MobileNetConfig.from_env()


@st.cache_resource
def load_from_url(model_url, metadata_url):
    """Load a classifier exported to the cloud from Teachable Machine"""
    metadata = metadata_url or None
    if metadata is None and is_url(model_url):
        # Teachable Machine shares metadata.json next to model.json
        metadata = model_url.rsplit("/", 1)[0] + "/metadata.json"
    return load(model_url, metadata, config=CONFIG)


@st.cache_resource
def load_from_uploads(model_bytes, weights_bytes, metadata_bytes):
    """Cached on the uploaded bytes so reruns don't reload the model"""
    metadata = None
    if metadata_bytes is not None:
        try:
            metadata = json.loads(metadata_bytes.decode("utf-8"))
        except ValueError as e:
            raise InvalidInputError(f"metadata.json is not valid JSON: {e}") from e
    return load_from_files(model_bytes, weights_bytes, metadata, config=CONFIG)


def show_predictions(predictions):
    for i, pred in enumerate(predictions, 1):
        st.write(f"**{i}. {pred['className']}**")
        st.progress(min(max(pred['probability'], 0.0), 1.0))
        st.write(f"Confidence: {pred['probability']:.4f} ({pred['probability'] * 100:.2f}%)")

    if predictions:
        top_pred = predictions[0]
        st.subheader("🏆 Top Prediction")
        st.success(f"**{top_pred['className']}** with {top_pred['probability'] * 100:.2f}% confidence")


def main():
    st.title("🧠 Teachable Machine Image Classifier")
    st.markdown("*Run an image model exported from Teachable Machine on uploaded images or your webcam*")

    # Sidebar
    st.sidebar.title("⚙️ Settings")
    st.sidebar.subheader("📁 Load Your Model")

    source = st.sidebar.radio("Model source", ["Shareable link", "Upload files"])

    classifier = None
    try:
        if source == "Shareable link":
            model_url = st.sidebar.text_input(
                "model.json URL",
                placeholder="https://teachablemachine.withgoogle.com/models/.../model.json"
            )
            metadata_url = st.sidebar.text_input(
                "metadata.json URL (optional)",
                help="Defaults to metadata.json next to model.json"
            )
            if model_url:
                with st.spinner("Loading your model..."):
                    classifier = load_from_url(model_url.strip(), metadata_url.strip())
        else:
            model_file = st.sidebar.file_uploader("model.json", type=['json'], key="model_json")
            weights_file = st.sidebar.file_uploader("weights.bin", type=['bin'], key="weights_bin")
            metadata_file = st.sidebar.file_uploader("metadata.json (optional)", type=['json'], key="metadata_json")
            if model_file and weights_file:
                with st.spinner("Loading your model..."):
                    classifier = load_from_uploads(
                        model_file.getvalue(),
                        weights_file.getvalue(),
                        metadata_file.getvalue() if metadata_file is not None else None,
                    )
    except TeachableMobileNetError as e:
        st.sidebar.error(f"Error loading model: {e}")

    st.sidebar.subheader("🎯 Prediction Settings")
    max_predictions = st.sidebar.slider("Number of Top Predictions", 1, 10, 3, 1)
    flipped = st.sidebar.checkbox("Mirror image (selfie camera)", value=False)

    if classifier is None:
        st.info("👈 Load a model exported from Teachable Machine to start")
        return

    info = get_model_info(classifier.model)
    metadata = classifier.get_metadata()
    st.sidebar.success("✅ Model loaded successfully!")
    st.sidebar.write(f"**Model:** {metadata.model_name}")
    st.sidebar.write(f"**Classes:** {classifier.get_total_classes()}")
    st.sidebar.write(f"**Parameters:** {info['total_params']:,}")
    with st.sidebar.expander("View Classes"):
        for i, label in enumerate(metadata.labels):
            st.write(f"{i}: {label}")

    if metadata.labels and len(metadata.labels) != classifier.get_total_classes():
        st.sidebar.warning(
            f"⚠️ Metadata has {len(metadata.labels)} labels but the model outputs "
            f"{classifier.get_total_classes()} classes"
        )

    image_tab, webcam_tab = st.tabs(["📷 Image", "📹 Webcam"])

    with image_tab:
        col1, col2 = st.columns([1, 1])
        with col1:
            uploaded_image = st.file_uploader(
                "Choose an image file",
                type=['png', 'jpg', 'jpeg', 'bmp'],
            )
            if uploaded_image:
                image = Image.open(uploaded_image)
                st.image(image, caption="Original Image", use_container_width=True)
                st.write(f"**Will be cropped to:** {CustomMobileNet.EXPECTED_IMAGE_SIZE} × "
                         f"{CustomMobileNet.EXPECTED_IMAGE_SIZE} pixels")
        with col2:
            st.subheader("🎯 Classification Results")
            if uploaded_image:
                with st.spinner("Analyzing image..."):
                    try:
                        predictions = classifier.predict(image, flipped=flipped,
                                                         max_predictions=max_predictions)
                    except TeachableMobileNetError as e:
                        st.error(f"Could not classify image: {e}")
                    else:
                        show_predictions(predictions)
            else:
                st.info("👆 Please upload an image to classify")

    with webcam_tab:
        frame_skip = st.slider(
            "Frame Skip", 1, 5, 2, 1,
            help="Process every Nth frame (higher = faster but less smooth)"
        )
        video_processor = ClassifierVideoProcessor()
        video_processor.set_classifier(classifier)
        video_processor.set_parameters(flipped, max_predictions, frame_skip)

        webrtc_streamer(
            key="teachable-machine-classifier",
            video_processor_factory=lambda: video_processor,
            rtc_configuration=get_webrtc_config(),
            media_stream_constraints={"video": True, "audio": False},
            async_processing=True,
        )


if __name__ == "__main__":
    main()
