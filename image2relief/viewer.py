import sys
import os
import shutil
import logging
import tempfile
from datetime import datetime
from typing import Optional

from PyQt5.QtWidgets import (QApplication, QMainWindow, QVBoxLayout, QHBoxLayout,
    QWidget, QPushButton, QFileDialog, QLabel, QSpinBox, QDoubleSpinBox,
    QComboBox, QCheckBox, QGroupBox, QMessageBox)
from PyQt5.QtCore import Qt
from PyQt5.QtGui import QPixmap, QImage
import vtk
from vtk.qt.QVTKRenderWindowInteractor import QVTKRenderWindowInteractor
from PIL import Image

from .logging_config import setup_logging
from .pipeline import image_to_relief
from .pixels import FIT_MODES
from .settings import DEFAULT_BASE_THICKNESS, DEFAULT_PIXEL_SIZE, NORMAL_MODES, ReliefSettings

logger = logging.getLogger(__name__)

# Constants
DEFAULT_WIDTH = 100
DEFAULT_HEIGHT = 100
PREVIEW_SIZE = 300
MAX_DIMENSION = 1000
MIN_DIMENSION = 1


class ReliefViewer(QMainWindow):
    """Main window: pick an image, tune the relief, preview and export the STL."""

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setWindowTitle("Image to Relief")
        self.resize(1200, 800)

        self.current_image_path: Optional[str] = None
        self.stl_path: Optional[str] = None
        self.stl_actor = None

        unique_folder = f"image2relief_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        self.temp_dir = os.path.join(tempfile.gettempdir(), unique_folder)
        os.makedirs(self.temp_dir, exist_ok=True)
        logger.info(f"Created temporary directory: {self.temp_dir}")

        self.central_widget = QWidget()
        self.setCentralWidget(self.central_widget)
        self.main_layout = QHBoxLayout(self.central_widget)

        self.create_left_panel()
        self.create_right_panel()
        self.setup_vtk()

        self.convert_button.setEnabled(False)
        self.export_button.setEnabled(False)

    def create_left_panel(self):
        left_panel = QWidget()
        left_layout = QVBoxLayout(left_panel)

        # Image loading section
        load_group = QGroupBox("Image Loading")
        load_layout = QVBoxLayout()
        self.load_button = QPushButton("Load Image")
        self.load_button.clicked.connect(self.load_image)
        self.image_label = QLabel("No image loaded")
        self.invert_check = QCheckBox("Invert image")
        load_layout.addWidget(self.load_button)
        load_layout.addWidget(self.image_label)
        load_layout.addWidget(self.invert_check)
        load_group.setLayout(load_layout)
        left_layout.addWidget(load_group)

        # Resize options
        resize_group = QGroupBox("Resize Options")
        resize_layout = QVBoxLayout()
        self.resize_check = QCheckBox("Resize before conversion")
        resize_layout.addWidget(self.resize_check)

        size_layout = QHBoxLayout()
        self.width_spin = QSpinBox()
        self.width_spin.setRange(MIN_DIMENSION, MAX_DIMENSION)
        self.width_spin.setValue(DEFAULT_WIDTH)
        self.height_spin = QSpinBox()
        self.height_spin.setRange(MIN_DIMENSION, MAX_DIMENSION)
        self.height_spin.setValue(DEFAULT_HEIGHT)
        size_layout.addWidget(QLabel("Width:"))
        size_layout.addWidget(self.width_spin)
        size_layout.addWidget(QLabel("Height:"))
        size_layout.addWidget(self.height_spin)
        resize_layout.addLayout(size_layout)

        self.resize_method = QComboBox()
        self.resize_method.addItems(list(FIT_MODES))
        resize_layout.addWidget(QLabel("Resize Method:"))
        resize_layout.addWidget(self.resize_method)
        resize_group.setLayout(resize_layout)
        left_layout.addWidget(resize_group)

        # Relief parameters
        param_group = QGroupBox("Relief Parameters")
        param_layout = QVBoxLayout()

        base_layout = QHBoxLayout()
        self.base_thickness = QDoubleSpinBox()
        self.base_thickness.setRange(0.0, 50.0)
        self.base_thickness.setValue(DEFAULT_BASE_THICKNESS)
        self.base_thickness.setSingleStep(0.5)
        base_layout.addWidget(QLabel("Base Thickness:"))
        base_layout.addWidget(self.base_thickness)
        param_layout.addLayout(base_layout)

        pixel_layout = QHBoxLayout()
        self.pixel_size = QDoubleSpinBox()
        self.pixel_size.setDecimals(3)
        self.pixel_size.setRange(0.001, 10.0)
        self.pixel_size.setValue(DEFAULT_PIXEL_SIZE)
        self.pixel_size.setSingleStep(0.1)
        pixel_layout.addWidget(QLabel("Pixel Size:"))
        pixel_layout.addWidget(self.pixel_size)
        param_layout.addLayout(pixel_layout)

        self.normalize_check = QCheckBox("Center each scanline")
        self.normalize_check.setChecked(True)
        self.center_check = QCheckBox("Center model on origin")
        self.center_check.setChecked(True)
        param_layout.addWidget(self.normalize_check)
        param_layout.addWidget(self.center_check)

        self.normal_mode = QComboBox()
        self.normal_mode.addItems(list(NORMAL_MODES))
        param_layout.addWidget(QLabel("Normals:"))
        param_layout.addWidget(self.normal_mode)

        param_group.setLayout(param_layout)
        left_layout.addWidget(param_group)

        self.convert_button = QPushButton("Generate Relief")
        self.convert_button.clicked.connect(self.convert_to_relief)
        self.export_button = QPushButton("Export STL")
        self.export_button.clicked.connect(self.export_stl)

        left_layout.addWidget(self.convert_button)
        left_layout.addWidget(self.export_button)
        left_layout.addStretch()

        self.main_layout.addWidget(left_panel, stretch=1)

    def create_right_panel(self):
        right_panel = QWidget()
        right_layout = QVBoxLayout(right_panel)

        preview_group = QGroupBox("Image Preview")
        preview_layout = QVBoxLayout()
        self.preview_label = QLabel()
        self.preview_label.setMinimumSize(PREVIEW_SIZE, PREVIEW_SIZE)
        self.preview_label.setAlignment(Qt.AlignCenter)
        preview_layout.addWidget(self.preview_label)
        preview_group.setLayout(preview_layout)
        right_layout.addWidget(preview_group)

        viewport_group = QGroupBox("3D Preview")
        viewport_layout = QVBoxLayout()
        self.vtk_widget = QVTKRenderWindowInteractor()
        viewport_layout.addWidget(self.vtk_widget)
        viewport_group.setLayout(viewport_layout)
        right_layout.addWidget(viewport_group)

        self.main_layout.addWidget(right_panel, stretch=2)

    def setup_vtk(self):
        self.renderer = vtk.vtkRenderer()
        self.vtk_widget.GetRenderWindow().AddRenderer(self.renderer)
        self.interactor = self.vtk_widget.GetRenderWindow().GetInteractor()
        self.interactor.SetInteractorStyle(vtk.vtkInteractorStyleTrackballCamera())

        self.renderer.ResetCamera()
        self.renderer.SetBackground(0.2, 0.2, 0.2)
        self.interactor.Initialize()

    def current_settings(self) -> ReliefSettings:
        return ReliefSettings(base_thickness=self.base_thickness.value(),
                              pixel_size=self.pixel_size.value(),
                              normalize_rows=self.normalize_check.isChecked(),
                              center=self.center_check.isChecked(),
                              normals=self.normal_mode.currentText())

    def load_image(self) -> None:
        """Load an image file selected by the user."""
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Open Image", "", "Image Files (*.png *.jpg *.jpeg *.bmp *.tiff)")

        if file_path:
            self.current_image_path = file_path
            self.image_label.setText(os.path.basename(file_path))
            logger.info(f"Loaded image: {file_path}")
            self.update_image_preview(file_path)
            self.convert_button.setEnabled(True)
            self.export_button.setEnabled(False)

    def update_image_preview(self, image_path: str) -> None:
        """Show a grayscale thumbnail of the image."""
        try:
            with Image.open(image_path) as img:
                thumb = img.convert('L')
                thumb.thumbnail((PREVIEW_SIZE, PREVIEW_SIZE), Image.Resampling.LANCZOS)
                qim = QImage(thumb.tobytes("raw", "L"), thumb.size[0], thumb.size[1],
                             thumb.size[0], QImage.Format_Grayscale8)
                self.preview_label.setPixmap(QPixmap.fromImage(qim))
        except OSError as e:
            logger.error(f"Failed to update image preview: {e}")
            self.preview_label.setText("Preview unavailable")

    def convert_to_relief(self) -> None:
        """Generate the relief STL for the current image and show it."""
        if not self.current_image_path:
            return

        size = None
        if self.resize_check.isChecked():
            size = (self.width_spin.value(), self.height_spin.value())

        try:
            self.stl_path = os.path.join(self.temp_dir, "relief.stl")
            image_to_relief(self.current_image_path, self.stl_path,
                            size=size, fit=self.resize_method.currentText(),
                            invert=self.invert_check.isChecked(),
                            settings=self.current_settings())
            self.load_stl_to_viewer(self.stl_path)
            self.export_button.setEnabled(True)
            logger.info("Relief conversion completed successfully")
        except (ValueError, OSError) as e:
            error_msg = f"Failed to generate relief:\n{str(e)}"
            logger.error(error_msg)
            QMessageBox.critical(self, "Conversion Error", error_msg)

    def load_stl_to_viewer(self, stl_path: str) -> None:
        """Load and display an STL file in the 3D viewer."""
        if self.stl_actor:
            self.renderer.RemoveActor(self.stl_actor)

        reader = vtk.vtkSTLReader()
        reader.SetFileName(stl_path)

        mapper = vtk.vtkPolyDataMapper()
        mapper.SetInputConnection(reader.GetOutputPort())

        self.stl_actor = vtk.vtkActor()
        self.stl_actor.SetMapper(mapper)
        self.renderer.AddActor(self.stl_actor)

        self.renderer.ResetCamera()
        self.vtk_widget.GetRenderWindow().Render()
        logger.info(f"Loaded STL to viewer: {stl_path}")

    def export_stl(self) -> None:
        """Copy the generated STL file to a user-selected location."""
        if not self.stl_path:
            return

        save_path, _ = QFileDialog.getSaveFileName(
            self, "Save STL File", "", "STL Files (*.stl)")

        if save_path:
            if not save_path.lower().endswith('.stl'):
                save_path += '.stl'

            try:
                shutil.copyfile(self.stl_path, save_path)
                logger.info(f"STL file exported to: {save_path}")
                QMessageBox.information(self, "Export Successful",
                                        f"STL file saved successfully to:\n{save_path}")
            except OSError as e:
                error_msg = f"Failed to save STL file:\n{str(e)}"
                logger.error(error_msg)
                QMessageBox.critical(self, "Export Error", error_msg)

    def closeEvent(self, event) -> None:
        """Clean up resources when closing the application."""
        try:
            if os.path.exists(self.temp_dir):
                shutil.rmtree(self.temp_dir)
                logger.info(f"Cleaned up temporary directory: {self.temp_dir}")
        except OSError as e:
            logger.warning(f"Error cleaning up temporary files: {e}")

        self.vtk_widget.Finalize()
        super().closeEvent(event)


def main() -> int:
    setup_logging()
    app = QApplication(sys.argv)
    window = ReliefViewer()
    window.show()
    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
