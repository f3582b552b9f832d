"""
Home page of the histogram equalization app.
"""

import streamlit as st


def render_home_page():
    """
    Render the landing page: what the tool does and how the pipeline works.
    """

    st.markdown("""
    <div style='text-align: center; padding: 2rem 0;'>
        <h1 style='font-size: 3rem; margin-bottom: 0.5rem;'>
            📊 Histogram Equalization
        </h1>
        <p style='font-size: 1.2rem;'>Contrast enhancement for 8-bit grayscale images</p>
    </div>
    """, unsafe_allow_html=True)

    col1, col2 = st.columns(2)

    with col1:
        st.markdown("### ⚙️ How it works")
        st.markdown("""
        1. **Histogram**: count the pixels at each of the 256 intensities
        2. **Cumulative histogram**: running sum of the counts
        3. **Equalization map**: scale the running sum to 0..255, one output level per input level
        4. **Remap**: look up every pixel in the map
        """)

    with col2:
        st.markdown("### 🔍 Verification")
        st.markdown("""
        - The result is compared with OpenCV's `equalizeHist`
        - Agreement is scored with MSE, PSNR and SSIM
        - The mapped distribution is checked against the measured histogram of the result
        """)

    st.info("👈 Pick a page in the sidebar to get started.")
