import streamlit as st
import numpy as np
import cv2

from config import PAGE_TITLE, PAGE_ICON, OUTPUT_FOLDER

st.set_page_config(
    page_title=PAGE_TITLE,
    page_icon=PAGE_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# Global theme (no config file needed)
st.markdown("""
    <style>
        :root {
            --primary-color: #2f6fdf;
            --secondary-background-color: #f2f6fd;
        }
        div.stButton > button:first-child {
            background-color: var(--primary-color);
            color: white;
            border: none;
        }
        section[data-testid="stSidebar"] > div:first-child {
            background-color: var(--secondary-background-color);
        }
        h1, h2, h3 {
            color: var(--primary-color);
        }
    </style>
""", unsafe_allow_html=True)

# --- Sidebar for Navigation ---
st.sidebar.title("Navigation")
page = st.sidebar.radio("Go to", [
    "Home",
    "Histogram Equalization",
    "Compare with OpenCV",
], index=0)

n_workers = st.sidebar.number_input("Histogram threads", min_value=1, max_value=16, value=1, step=1)


if page == "Home":
    from home import render_home_page
    render_home_page()


elif page == "Histogram Equalization":
    st.header("Grayscale Histogram Equalization")
    from enhancement_histogram import equalize_grayscale
    from image_loader import load_grayscale_upload, save_image
    from comparison import final_histogram_error

    uploaded_file = st.file_uploader("Upload an image (converted to grayscale)", type=["jpg", "png", "jpeg", "bmp"], key="eq_upload")

    if uploaded_file is not None:
        img_np = load_grayscale_upload(uploaded_file)
        st.image(img_np, caption=f"Original Grayscale Image ({img_np.shape[0]}x{img_np.shape[1]})", clamp=True)

        if st.button("Equalize Histogram", type="primary", key="eq_btn"):
            with st.spinner("Processing..."):
                try:
                    result = equalize_grayscale(img_np, n_workers=int(n_workers))

                    st.markdown("### 📊 Results")
                    col1, col2 = st.columns(2)

                    with col1:
                        st.markdown("**Original Image**")
                        st.image(img_np, use_container_width=True, clamp=True)

                    with col2:
                        st.markdown("**Equalized Image** ✨")
                        st.image(result.equalized, use_container_width=True, clamp=True)

                    col1, col2, col3 = st.columns(3)
                    col1.metric("Original range", f"{img_np.min()} – {img_np.max()}")
                    col2.metric("Equalized range", f"{result.equalized.min()} – {result.equalized.max()}")
                    col3.metric("Distinct output levels", int(np.count_nonzero(result.mapping.ps)))

                    err = final_histogram_error(result.equalized, result.mapping.final)
                    if err <= 1:
                        st.info(f"Mapped distribution matches the equalized image (max error {err})")
                    else:
                        st.warning(f"Mapped distribution differs from the equalized image by {err}")

                    save_path = save_image(result.equalized, "gray_equalized.png", output_folder=OUTPUT_FOLDER)
                    st.success(f"✓ Equalized image saved at: `{save_path}`")

                except Exception as e:
                    st.error(f"❌ Error: {e}")
                    import traceback
                    st.code(traceback.format_exc())


elif page == "Compare with OpenCV":
    st.header("Comparison with OpenCV equalizeHist")
    st.info("📊 Equalize an image with both implementations and measure how closely they agree")
    from enhancement_histogram import equalize_grayscale
    from image_loader import load_grayscale_upload
    from comparison import reference_equalization, compare_with_reference, describe_metric

    uploaded_file = st.file_uploader("Upload an image (converted to grayscale)", type=["jpg", "png", "jpeg", "bmp"], key="cmp_upload")

    if uploaded_file is not None:
        img_np = load_grayscale_upload(uploaded_file)

        if st.button("🔍 Compare", type="primary", key="cmp_btn"):
            with st.spinner("Calculating agreement metrics..."):
                try:
                    result = equalize_grayscale(img_np, n_workers=int(n_workers))
                    ref = reference_equalization(img_np)
                    metrics = compare_with_reference(result.equalized, ref)

                    col1, col2, col3 = st.columns(3)
                    with col1:
                        st.markdown("**Original**")
                        st.image(img_np, use_container_width=True, clamp=True)
                    with col2:
                        st.markdown("**This implementation**")
                        st.image(result.equalized, use_container_width=True, clamp=True)
                    with col3:
                        st.markdown("**OpenCV equalizeHist**")
                        st.image(ref, use_container_width=True, clamp=True)

                    st.markdown(f"## 🎯 Agreement: {metrics['quality_level']}")
                    st.markdown(f"{metrics['agreement'] * 100:.2f}% of pixels within one level, "
                                f"largest difference {metrics['max_abs_diff']}")

                    col1, col2, col3 = st.columns(3)
                    for col, name, fmt in ((col1, 'mse', "{:.2f}"), (col2, 'psnr', "{:.2f} dB"), (col3, 'ssim', "{:.4f}")):
                        value = metrics[name]
                        color, label = describe_metric(name, value)
                        shown = "∞ dB" if value == float('inf') else fmt.format(value)
                        with col:
                            st.markdown(f"### {name.upper()}")
                            st.markdown(f"<h1 style='text-align: center; color: {color};'>{shown}</h1>",
                                        unsafe_allow_html=True)
                            st.markdown(f"<p style='text-align: center;'>{label}</p>", unsafe_allow_html=True)

                    with st.expander("🔬 Difference Map", expanded=False):
                        diff = cv2.absdiff(result.equalized, ref)
                        diff_colored = cv2.applyColorMap(np.clip(diff.astype(np.int32) * 5, 0, 255).astype(np.uint8), cv2.COLORMAP_HOT)
                        st.image(cv2.cvtColor(diff_colored, cv2.COLOR_BGR2RGB), use_container_width=True, clamp=True)

                except Exception as e:
                    st.error(f"❌ Error during comparison: {e}")
                    import traceback
                    st.code(traceback.format_exc())
